"""Validation helpers shared by the views."""

# Cross-field errors are reported against the field the user has to fix.
MODEL_ERROR_FIELDS = {
    "password_mismatch": "confirmPassword",
    "password_unchanged": "newPassword",
}

FORM_FIELD = "form"


def collect_field_errors(errors: list[dict]) -> dict[str, str]:
    """Map pydantic error dicts to one message per form field.

    Request validation errors are prefixed with their source ("body",
    "query"); that prefix is dropped. The first error per field wins.
    """
    field_errors: dict[str, str] = {}
    for error in errors:
        loc = [part for part in error.get("loc", ()) if part not in ("body", "query")]
        if loc:
            key = str(loc[0])
        else:
            key = MODEL_ERROR_FIELDS.get(error.get("type", ""), FORM_FIELD)
        field_errors.setdefault(key, error.get("msg", "Invalid value"))
    return field_errors
