"""Markdown issue body for Linear.

Missing context values are left out of the table rather than rendered as
empty cells.
"""

from typing import Any

from shakenbake.core.models import BugReport, DeviceContext

FOOTER = "*Reported via [ShakeNbake](https://github.com/user/shakenbake)*"
MAX_CONSOLE_ERRORS = 5


def build_issue_description(
    report: BugReport,
    annotated_url: str | None = None,
    original_url: str | None = None,
    audio_url: str | None = None,
    upload_failures: list[str] | None = None,
) -> str:
    lines: list[str] = ["## Bug Report", "", report.description, ""]

    if report.audio is not None and report.audio.transcript:
        lines += ["### Audio Transcript", "", report.audio.transcript, ""]

    lines += ["### Screenshots", ""]
    if annotated_url:
        lines += ["**Annotated:**", f"![Annotated screenshot]({annotated_url})", ""]
    if original_url:
        lines += ["**Original:**", f"![Original screenshot]({original_url})", ""]

    if audio_url:
        lines += [f"**Audio recording:** [Listen]({audio_url})", ""]

    rows = build_context_rows(report.context)
    if rows:
        lines += [
            "### Device Context",
            "",
            "<details>",
            "<summary>Full device and environment details</summary>",
            "",
            "| Field | Value |",
            "|---|---|",
            *rows,
            "",
            "</details>",
            "",
        ]

    console_errors = build_console_errors(report.context)
    if console_errors:
        lines += [f"### Console Errors (last {MAX_CONSOLE_ERRORS})", "", console_errors, ""]

    if upload_failures:
        lines += ["### Upload Diagnostics", "", "Some attachments could not be uploaded:", ""]
        lines += [f"- {failure}" for failure in upload_failures]
        lines.append("")

    lines += ["---", FOOTER]
    return "\n".join(lines)


def _section(context: DeviceContext, name: str) -> dict[str, Any]:
    section = context.get(name)
    return section if isinstance(section, dict) else {}


def build_context_rows(context: DeviceContext) -> list[str]:
    rows: list[str] = []

    platform = _section(context, "platform")
    if platform.get("os"):
        os_display = platform["os"]
        if platform.get("osVersion"):
            os_display = f"{os_display} {platform['osVersion']}"
        rows.append(f"| Platform | {os_display} |")
    if platform.get("userAgent"):
        rows.append(f"| User Agent | {platform['userAgent']} |")
    if platform.get("browser"):
        rows.append(f"| Browser | {platform['browser']} |")

    device = _section(context, "device")
    device_parts = [str(p) for p in (device.get("manufacturer"), device.get("model")) if p]
    if device_parts:
        rows.append(f"| Device | {' '.join(device_parts)} |")

    screen = _section(context, "screen")
    if screen.get("width") and screen.get("height"):
        scale = f" @{screen['scale']}x" if screen.get("scale") else ""
        rows.append(f"| Screen | {screen['width']}x{screen['height']}{scale} |")

    network = _section(context, "network")
    network_parts = []
    if network.get("type"):
        network_parts.append(str(network["type"]))
    if network.get("effectiveType"):
        network_parts.append(f"({network['effectiveType']})")
    if network_parts:
        rows.append(f"| Network | {' '.join(network_parts)} |")

    battery = _section(context, "battery")
    if battery.get("level") is not None:
        state = f" ({battery['state']})" if battery.get("state") else ""
        rows.append(f"| Battery | {battery['level']}%{state} |")

    locale = _section(context, "locale")
    locale_parts = [str(p) for p in (locale.get("languageCode"), locale.get("regionCode")) if p]
    if locale_parts:
        rows.append(f"| Locale | {'-'.join(locale_parts)} |")
    if locale.get("timezone"):
        rows.append(f"| Timezone | {locale['timezone']} |")

    app = _section(context, "app")
    if app.get("version"):
        build = f" ({app['buildNumber']})" if app.get("buildNumber") else ""
        rows.append(f"| App Version | {app['version']}{build} |")
    if app.get("url"):
        rows.append(f"| URL | {app['url']} |")

    navigation = _section(context, "navigation")
    if navigation.get("currentRoute"):
        rows.append(f"| Current Route | {navigation['currentRoute']} |")

    return rows


def build_console_errors(context: DeviceContext) -> str | None:
    errors = _section(context, "console").get("recentErrors") or []
    if not errors:
        return None

    blocks = []
    for error in errors[-MAX_CONSOLE_ERRORS:]:
        block = ["```", str(error.get("message", ""))]
        if error.get("stack"):
            block.append(str(error["stack"]))
        block.append("```")
        block.append(f"_{error.get('timestamp', '')}_")
        blocks.append("\n".join(block))
    return "\n\n".join(blocks)
