"""Change classification between a stored job and the freshly fetched one."""

from jobmirror.schema import JobContent

# view_count moves on almost every fetch, so it never marks a job as changed.
SIGNIFICANT_FIELDS: tuple[str, ...] = tuple(
    name for name in JobContent.model_fields if name not in {"job_primary_id", "view_count"}
)


def changed_fields(existing: JobContent, incoming: JobContent) -> list[str]:
    """Significant fields whose values differ. Both sides are typed, so a missing value is always None."""
    return [f for f in SIGNIFICANT_FIELDS if getattr(existing, f) != getattr(incoming, f)]
