import copy

from shakenbake.core.models import DeviceContext


def redact_context(context: DeviceContext, fields: list[str]) -> DeviceContext:
    """Remove context fields by dot-path before a report leaves the device.

    Supported patterns:
        ``"console"``    removes the whole section.
        ``"network.*"``  empties the section but keeps it present.
        ``"app.url"``    removes one key from a section.

    Returns a new dict; ``context`` is not mutated. Paths deeper than two
    segments and paths to missing sections are ignored.
    """
    if not fields:
        return context

    result = copy.deepcopy(context)
    for path in fields:
        parts = path.split(".")
        if len(parts) == 1:
            result.pop(parts[0], None)
        elif len(parts) == 2 and parts[1] == "*":
            if parts[0] in result:
                result[parts[0]] = {}
        elif len(parts) == 2:
            section = result.get(parts[0])
            if isinstance(section, dict):
                section.pop(parts[1], None)
    return result
