"""Exceptions raised when a declaration or a call breaks the client conventions.

Audits never raise these; they report through ``ValidationResult`` instead.
"""

PATH_MARKER = "[api-compliance:path]"
SIGNATURE_MARKER = "[api-compliance:signature]"
URI_MARKER = "[api-compliance:uri]"
TYPE_MARKER = "[api-compliance:types]"


class ComplianceError(Exception):
    """Base class for every error raised by api-compliance."""


class PathFormatError(ComplianceError, ValueError):
    """Raised when a decorator is given a malformed path template."""

    def __init__(self, path: object, reasons: list[str], suggestion: str | None = None) -> None:
        lines = [f"{PATH_MARKER} Invalid API path {path!r}"]
        lines += [f"  - {reason}" for reason in reasons]
        if suggestion is not None:
            lines.append(f"  Use instead: {suggestion!r}")
        super().__init__("\n".join(lines))
        self.path = path
        self.reasons = reasons
        self.suggestion = suggestion


class SignatureViolationError(ComplianceError, TypeError):
    """Raised when a decorated method's parameters break the signature convention."""

    def __init__(self, method_name: str, violations: list[str], canonical: str, hint: str | None = None) -> None:
        lines = [f"{SIGNATURE_MARKER} Method '{method_name}' does not follow the API signature convention:"]
        lines += [f"  - {violation}" for violation in violations]
        lines.append("  Expected declaration:")
        lines += [f"    {line}" for line in canonical.splitlines()]
        if hint:
            lines.append(f"  {hint}")
        super().__init__("\n".join(lines))
        self.method_name = method_name
        self.violations = violations
        self.canonical = canonical


class MissingPathParameterError(ComplianceError, ValueError):
    """Raised when placeholders are left unresolved while building a URI."""

    def __init__(self, missing: list[str], uri: str) -> None:
        super().__init__(
            f"{URI_MARKER} Missing path parameters: [{', '.join(missing)}] in URI: \"{uri}\"\n"
            f"  Bind them with with_params({{{', '.join(repr(m) + ': ...' for m in missing)}}})"
        )
        self.missing = missing
        self.uri = uri


class TypeNamingError(ComplianceError, TypeError):
    """Raised at call time when request/response types are misnamed."""

    def __init__(self, errors: list[str]) -> None:
        super().__init__(f"{TYPE_MARKER} Type naming validation failed: {'; '.join(errors)}")
        self.errors = errors
