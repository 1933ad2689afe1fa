# Utilities package
from .stage_graph import PipelineStage, allowed_next, required_fields, to_stage
from .identity import normalize_email, normalize_phone, normalize_name, email_domain
from .pagination import calculate_offset, calculate_total_pages, PaginationParams, PaginationMeta

__all__ = [
    "PipelineStage",
    "allowed_next",
    "required_fields",
    "to_stage",
    "normalize_email",
    "normalize_phone",
    "normalize_name",
    "email_domain",
    "calculate_offset",
    "calculate_total_pages",
    "PaginationParams",
    "PaginationMeta",
]
