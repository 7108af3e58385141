from dataclasses import dataclass

MIN_TITLE_LENGTH = 3


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


def validate_title(title: str) -> FieldError | None:
    trimmed = title.strip()
    if not trimmed:
        return FieldError(field="title", message="Title is required")
    if len(trimmed) < MIN_TITLE_LENGTH:
        return FieldError(
            field="title",
            message=f"Title must be at least {MIN_TITLE_LENGTH} characters",
        )
    return None


def validate_form(*, title: str) -> list[FieldError]:
    """Validate report form fields. An empty list means the form can be submitted."""
    errors: list[FieldError] = []
    title_error = validate_title(title)
    if title_error is not None:
        errors.append(title_error)
    return errors


def is_form_valid(*, title: str) -> bool:
    return not validate_form(title=title)
