"""I/O utilities for CSV import/export."""

from .export_csv import assignments_frame, export_assignments_csv
from .import_csv import (
    import_employees_csv,
    import_managers_csv,
    import_organizations_csv,
    import_teams_csv,
)

__all__ = [
    "import_organizations_csv",
    "import_teams_csv",
    "import_employees_csv",
    "import_managers_csv",
    "assignments_frame",
    "export_assignments_csv",
]
