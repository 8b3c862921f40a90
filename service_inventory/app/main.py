"""
Inventory toolkit service: record queries, imports, exports, reports,
assignment checks and form validation over HTTP.
"""

from dataclasses import asdict
from typing import Any, Dict, List, Optional

from fastapi import Depends, File, Form, Request, Response, UploadFile
from pydantic import BaseModel, Field

from inventory_shared.base_service import BaseService
from inventory_shared.errors import ValidationError

from .access.guard import AccessGuard
from .access.tokens import TokenVerifier
from .access.validators import FORM_VALIDATORS, get_user_form_warnings, validate_password_strength
from .assignments.eligibility import EligibilityRequest, EligibilityResult, check_assignment_eligibility
from .assignments.returns import ReturnCheckRequest, ReturnValidationResult, validate_return
from .exports.models import ExportPayload
from .exports.service import ExportService
from .imports.schemas import ImportDataType
from .imports.service import DataImportService, ImportPreview, ImportResult, ImportValidateRequest
from .reports.builder import ReportBuilder, ReportRequest, ReportResult
from .rules.engine import RuleEvaluator
from .rules.models import RecordQueryRequest, RecordQueryResponse, UniqueValuesRequest


class PasswordCheckRequest(BaseModel):
    password: str = ""


class FormValidationRequest(BaseModel):
    data: Dict[str, Any] = Field(default_factory=dict)
    is_update: bool = False
    assigned_date: Optional[str] = None


class FormValidationResponse(BaseModel):
    valid: bool
    errors: Dict[str, str] = Field(default_factory=dict)
    warnings: List[str] = Field(default_factory=list)


class InventoryToolkitService(BaseService):
    """Inventory toolkit service implementation."""

    def __init__(self):
        super().__init__("inventory", 8000)

        self.guard = AccessGuard(TokenVerifier(self.config.jwt_secret, self.config.jwt_algorithm))
        self.evaluator = RuleEvaluator(
            metrics=self.metrics,
            unique_values_limit=self.config.unique_values_limit,
        )
        self.importer = DataImportService(
            max_file_size=self.config.max_import_file_size,
            preview_rows=self.config.import_preview_rows,
            metrics=self.metrics,
        )
        self.exporter = ExportService(self.evaluator, metrics=self.metrics)
        self.reports = ReportBuilder(self.evaluator)

        self._setup_inventory_routes()

    async def require_access(self, request: Request) -> Optional[Dict[str, Any]]:
        """Dependency guarding every /api route."""
        return self.guard.check(request.url.path, request.headers.get("Authorization"))

    def _setup_inventory_routes(self):
        """Set up toolkit routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "inventory",
                "message": "IT Asset Inventory - Toolkit Service",
                "version": "1.0.0",
                "capabilities": ["records", "imports", "exports", "reports", "assignments", "validation"],
            }

        @self.app.post("/api/records/query", response_model=RecordQueryResponse)
        async def query_records(body: RecordQueryRequest, user=Depends(self.require_access)):
            """Filter and sort a record set."""
            records = self.evaluator.evaluate(
                body.records,
                filters=body.filter_rules(),
                date_range=body.date_range_filter(),
                sort=body.sort_rules(),
            )
            return RecordQueryResponse(records=records, total=len(body.records), matched=len(records))

        @self.app.post("/api/records/unique-values")
        async def unique_values(body: UniqueValuesRequest, user=Depends(self.require_access)):
            """Autocomplete suggestions per column."""
            return {"values": self.evaluator.unique_values(body.records, body.columns, body.limit)}

        @self.app.post("/api/imports/preview", response_model=ImportPreview)
        async def preview_import(file: UploadFile = File(...),
                                 data_type: Optional[ImportDataType] = Form(None),
                                 user=Depends(self.require_access)):
            """Headers, sample rows, detected type and suggested mapping of an upload."""
            content = await file.read()
            return self.importer.preview(file.filename or "", content, data_type)

        @self.app.post("/api/imports/validate", response_model=ImportResult)
        async def validate_import(body: ImportValidateRequest, user=Depends(self.require_access)):
            """Validate and transform mapped rows."""
            return self.importer.import_rows(body.headers, body.rows, body.data_type, body.mapping)

        @self.app.post("/api/exports")
        async def export_records(body: ExportPayload, user=Depends(self.require_access)):
            """Render records to an Excel, CSV, PDF or JSON download."""
            artifact = self.exporter.export(body.records, body)
            return Response(
                content=artifact.content,
                media_type=artifact.media_type,
                headers={
                    "Content-Disposition": f'attachment; filename="{artifact.filename}"',
                    "X-Row-Count": str(artifact.row_count),
                },
            )

        @self.app.post("/api/reports", response_model=ReportResult)
        async def build_report(body: ReportRequest, user=Depends(self.require_access)):
            """Group and aggregate a record set."""
            return self.reports.build(body.records, body)

        @self.app.post("/api/assignments/eligibility", response_model=EligibilityResult)
        async def assignment_eligibility(body: EligibilityRequest, user=Depends(self.require_access)):
            """Check whether an asset can be assigned to an employee."""
            return check_assignment_eligibility(
                body.employee_id,
                body.asset_id,
                body.asset_type,
                body.assignments,
                max_employee_assignments=body.max_employee_assignments,
                software_licenses=body.software_licenses,
                exclude_assignment_id=body.exclude_assignment_id,
            )

        @self.app.post("/api/assignments/return-check", response_model=ReturnValidationResult)
        async def return_check(body: ReturnCheckRequest, user=Depends(self.require_access)):
            """Inspect a return before it is submitted."""
            return validate_return(body.assignment, body.return_data, body.condition)

        @self.app.post("/api/validation/password-strength")
        async def password_strength(body: PasswordCheckRequest, user=Depends(self.require_access)):
            return asdict(validate_password_strength(body.password))

        @self.app.post("/api/validation/{entity}", response_model=FormValidationResponse)
        async def validate_form(entity: str, body: FormValidationRequest, user=Depends(self.require_access)):
            """Run the field validators of one form."""
            validator = FORM_VALIDATORS.get(entity)
            if validator is None:
                raise ValidationError(
                    f"Unknown form: {entity}",
                    details={"supported": sorted(FORM_VALIDATORS)},
                )

            warnings: List[str] = []
            if entity == "user":
                errors = validator(body.data, is_update=body.is_update)
                warnings = get_user_form_warnings(body.data)
            elif entity == "return":
                errors = validator(body.data, assigned_date=body.assigned_date)
            else:
                errors = validator(body.data)
            return FormValidationResponse(valid=not errors, errors=errors, warnings=warnings)


def create_app():
    """Create FastAPI application."""
    service = InventoryToolkitService()
    return service.app


if __name__ == "__main__":
    service = InventoryToolkitService()
    service.run()
