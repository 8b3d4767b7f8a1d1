"""E-mail templates and ``{{variable}}`` rendering."""

import html
import re
from dataclasses import dataclass

from domain.entities.domain_event import EventTypes

_VARIABLE = re.compile(r"\{\{(\w+)\}\}")

DEFAULT_TEMPLATE_VERSION = 1


@dataclass(frozen=True)
class EmailTemplate:
    """A subject/html/text triple with ``{{name}}`` placeholders."""

    template_id: str
    subject: str
    html: str
    text: str | None = None
    version: int = DEFAULT_TEMPLATE_VERSION


@dataclass(frozen=True)
class RenderResult:
    """Outcome of rendering; ``error`` is set instead of raising."""

    ok: bool
    subject: str = ""
    html: str = ""
    text: str | None = None
    error: str | None = None


def _substitute(source: str, variables: dict[str, str], escape: bool) -> str:
    def replace(match: re.Match[str]) -> str:
        value = variables.get(match.group(1), "")
        if not isinstance(value, str):
            raise TypeError(f"Template variable {match.group(1)!r} must be a string")
        return html.escape(value) if escape else value

    return _VARIABLE.sub(replace, source)


def render_template(template: EmailTemplate, variables: dict[str, str]) -> RenderResult:
    """Replace ``{{name}}`` tokens; unknown names render as empty strings.

    Values are HTML-escaped in the html part only. Never raises.
    """
    try:
        subject = _substitute(template.subject, variables, escape=False)
        body_html = _substitute(template.html, variables, escape=True)
        text = _substitute(template.text, variables, escape=False) if template.text else None
    except (TypeError, AttributeError) as e:
        return RenderResult(ok=False, error=str(e) or "Template render failed")
    return RenderResult(ok=True, subject=subject, html=body_html, text=text)


_FOOTER_HTML = '<p><a href="{{link}}">Open in the app</a></p>'
_FOOTER_TEXT = "Open in the app: {{link}}"


def _template(template_id: str, subject: str, intro: str) -> EmailTemplate:
    return EmailTemplate(
        template_id=template_id,
        subject=subject,
        html=f"<p>Hi {{{{recipientName}}}},</p><p>{intro}</p><p>{{{{body}}}}</p>{_FOOTER_HTML}",
        text=f"Hi {{{{recipientName}}}},\n\n{intro}\n\n{{{{body}}}}\n\n{_FOOTER_TEXT}",
    )


DEFAULT_TEMPLATES: dict[str, EmailTemplate] = {
    EventTypes.MATTER_CREATED: _template(
        EventTypes.MATTER_CREATED, "{{title}}", "A new matter was created."
    ),
    EventTypes.MATTER_UPDATED: _template(
        EventTypes.MATTER_UPDATED, "{{title}}", "A matter you follow was updated."
    ),
    EventTypes.TASK_CREATED: _template(
        EventTypes.TASK_CREATED, "{{title}}", "A new task was created."
    ),
    EventTypes.TASK_UPDATED: _template(
        EventTypes.TASK_UPDATED, "{{title}}", "A task you follow was updated."
    ),
    EventTypes.TASK_ASSIGNED: _template(
        EventTypes.TASK_ASSIGNED, "{{title}}", "You were assigned to a task."
    ),
    EventTypes.TASK_COMPLETED: _template(
        EventTypes.TASK_COMPLETED, "{{title}}", "A task was marked complete."
    ),
    EventTypes.DOCUMENT_UPLOADED: _template(
        EventTypes.DOCUMENT_UPLOADED, "{{title}}", "A document was uploaded."
    ),
    EventTypes.INVOICE_CREATED: _template(
        EventTypes.INVOICE_CREATED, "{{title}}", "A new invoice was created."
    ),
    EventTypes.INVOICE_SENT: _template(
        EventTypes.INVOICE_SENT, "{{title}}", "An invoice was sent."
    ),
    EventTypes.PAYMENT_RECEIVED: _template(
        EventTypes.PAYMENT_RECEIVED, "{{title}}", "A payment was recorded."
    ),
    EventTypes.USER_JOINED: _template(
        EventTypes.USER_JOINED, "{{title}}", "A user joined your firm."
    ),
    EventTypes.CLIENT_CREATED: _template(
        EventTypes.CLIENT_CREATED, "{{title}}", "A new client was added."
    ),
}

_FALLBACK_TEMPLATE = _template("default", "{{title}}", "You have an update.")


def get_default_template(template_id: str | None) -> EmailTemplate:
    """In-code template for an event type, or the generic fallback."""
    if template_id and template_id in DEFAULT_TEMPLATES:
        return DEFAULT_TEMPLATES[template_id]
    return _FALLBACK_TEMPLATE
