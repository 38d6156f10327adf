"""
Drawing surface for the attendance report.

The report is laid out with absolute coordinates rather than Platypus
flowables, because pagination is decided by our own controller (see
pagination.py). This module wraps a ReportLab canvas so layout code can
think in *millimetres from the top-left corner*, the way a printed A4
page is measured:

    surface.text(17, 30, "Hello")   # 17mm from the left, baseline 30mm down

ReportLab's canvas measures in points from the *bottom*-left, so every
call converts: x_pt = x * mm, y_pt = page_height_pt - y * mm.

Any object with the same methods can stand in for CanvasSurface (the
tests use a recording surface that just stores the calls).
"""

from io import BytesIO

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas


class CanvasSurface:
    """ReportLab canvas with top-down millimetre coordinates.

    Usage:
        surface = CanvasSurface(title="Attendance report")
        surface.fill_rect(0, 0, 210, 8, BRAND_CELESTE)
        surface.text(17, 30, "MedSalud", font="Helvetica-Bold", size=16)
        surface.show_page()
        pdf_bytes = surface.save()
    """

    def __init__(self, pagesize=A4, title: str = "", author: str = ""):
        self._buffer = BytesIO()
        self._pagesize = pagesize
        self._canvas = canvas.Canvas(self._buffer, pagesize=pagesize)
        if title:
            self._canvas.setTitle(title)
        if author:
            self._canvas.setAuthor(author)

    def _y(self, y: float) -> float:
        return self._pagesize[1] - y * mm

    # --- Primitives ---

    def fill_rect(self, x: float, y: float, w: float, h: float, color):
        """Filled rectangle whose *top* edge is at y."""
        c = self._canvas
        c.saveState()
        c.setFillColor(color)
        c.rect(x * mm, self._y(y + h), w * mm, h * mm, stroke=0, fill=1)
        c.restoreState()

    def fill_round_rect(self, x: float, y: float, w: float, h: float, radius: float, color):
        c = self._canvas
        c.saveState()
        c.setFillColor(color)
        c.roundRect(x * mm, self._y(y + h), w * mm, h * mm, radius * mm, stroke=0, fill=1)
        c.restoreState()

    def line(self, x1: float, y1: float, x2: float, y2: float, color, width: float = 0.5):
        """Straight line; width is in millimetres like everything else."""
        c = self._canvas
        c.saveState()
        c.setStrokeColor(color)
        c.setLineWidth(width * mm)
        c.line(x1 * mm, self._y(y1), x2 * mm, self._y(y2))
        c.restoreState()

    def text(
        self,
        x: float,
        y: float,
        text: str,
        font: str = "Helvetica",
        size: float = 9,
        color=colors.black,
        align: str = "left",
    ):
        """Single line of text with its baseline at y."""
        c = self._canvas
        c.saveState()
        c.setFont(font, size)
        c.setFillColor(color)
        if align == "center":
            c.drawCentredString(x * mm, self._y(y), text)
        elif align == "right":
            c.drawRightString(x * mm, self._y(y), text)
        else:
            c.drawString(x * mm, self._y(y), text)
        c.restoreState()

    def image(self, image, x: float, y: float, w: float, h: float):
        """Draw an ImageReader (or path) with its top-left corner at (x, y)."""
        self._canvas.drawImage(
            image, x * mm, self._y(y + h), w * mm, h * mm,
            mask="auto", preserveAspectRatio=True,
        )

    # --- Document lifecycle ---

    def show_page(self):
        """Close the current page; drawing continues on a fresh one."""
        self._canvas.showPage()

    def save(self) -> bytes:
        """Finish the document and return the PDF bytes."""
        self._canvas.save()
        return self._buffer.getvalue()
