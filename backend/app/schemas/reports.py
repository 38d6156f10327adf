"""
Pydantic schemas for the attendance report.

Two groups:
- The monthly productivity payload we *consume* from the appointments
  backend (field names are the backend's, in Spanish).
- The request body of POST /api/v1/reports/attendance/pdf.
"""

from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from app.models import Appointment, AttendanceRecord, ProductivitySummary, ReportRunInput, StaffMember


# --- Productivity API (inbound) ---

class ProductivityResumen(BaseModel):
    """The "resumen" block of /Citas/doctor/{id}/productividad-mensual.

    Missing numbers count as zero and a missing specialty map as empty;
    values of the wrong type fail validation.
    """
    total_citas: int = 0
    citas_completadas: int = 0
    total_ingresos: float = 0
    especialidades: dict[str, int] = Field(default_factory=dict)

    @field_validator("total_citas", "citas_completadas", "total_ingresos", mode="before")
    @classmethod
    def none_is_zero(cls, v):
        return 0 if v is None else v

    @field_validator("especialidades", mode="before")
    @classmethod
    def none_is_empty(cls, v):
        return {} if v is None else v


class NamedRef(BaseModel):
    """Nested {"nombre": ...} objects (patient, specialty)."""
    nombre: Optional[str] = None


class CitaSchema(BaseModel):
    """One entry of "citas". Every field may be missing."""
    fecha_atencion: Optional[datetime] = None
    paciente: Optional[NamedRef] = None
    especialidad: Optional[NamedRef] = None
    estado_actual: Optional[str] = None
    monto_total: Optional[float] = None

    def to_appointment(self) -> Appointment:
        return Appointment(
            attended_at=self.fecha_atencion,
            patient_name=self.paciente.nombre if self.paciente else None,
            specialty=self.especialidad.nombre if self.especialidad else None,
            status=self.estado_actual,
            amount=self.monto_total or 0.0,
        )


class MonthlyProductivityResponse(BaseModel):
    """Full response body: the month's appointments plus their summary."""
    citas: list[CitaSchema] = Field(default_factory=list)
    resumen: ProductivityResumen

    def to_summary(self) -> ProductivitySummary:
        return ProductivitySummary(
            scheduled=self.resumen.total_citas,
            completed=self.resumen.citas_completadas,
            revenue=self.resumen.total_ingresos,
            specialties=dict(self.resumen.especialidades),
            appointments=[cita.to_appointment() for cita in self.citas],
        )


# --- Report request (HTTP surface) ---

class StaffMemberSchema(BaseModel):
    id: int
    first_name: str
    family_name: str
    second_family_name: str = ""
    national_id: Optional[str] = None


class AttendanceRecordSchema(BaseModel):
    """One attendance row. All fields optional (open shifts, manual entries)."""
    clock_in: Optional[datetime] = None
    clock_out: Optional[datetime] = None
    minutes_worked: Optional[float] = None
    shift_start: Optional[datetime] = None


class AttendanceReportRequest(BaseModel):
    """Request to render an attendance report PDF.

    attendance should be ordered most recent first; only the first 10
    rows are printed.
    """
    staff: StaffMemberSchema
    attendance: list[AttendanceRecordSchema] = Field(default_factory=list)
    range_start: date
    range_end: date
    total_hours_worked: float = Field(default=0.0, ge=0)

    @model_validator(mode="after")
    def validate_range(self):
        if self.range_end < self.range_start:
            raise ValueError("range_end must not be before range_start")
        return self

    def to_run_input(self) -> ReportRunInput:
        return ReportRunInput(
            staff=StaffMember(**self.staff.model_dump()),
            attendance=[AttendanceRecord(**r.model_dump()) for r in self.attendance],
            range_start=self.range_start,
            range_end=self.range_end,
            total_hours_worked=self.total_hours_worked,
        )
