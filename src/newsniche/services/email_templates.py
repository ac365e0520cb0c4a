"""Submitter-facing emails rendered from the Jinja2 templates in ``templates/email``.

Each email has an ``.html`` and a ``.txt`` template with the same context;
only the HTML variant is autoescaped.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

EMAIL_TEMPLATES = Path(__file__).resolve().parent.parent / "templates" / "email"


@dataclass(frozen=True)
class OutboundEmail:
    to: str
    subject: str
    html: str
    text: str


@lru_cache(maxsize=1)
def _environment() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(EMAIL_TEMPLATES)),
        autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def render_email(template: str, *, to: str, subject: str, **context: Any) -> OutboundEmail:
    env = _environment()
    context = {"subject": subject, **context}
    return OutboundEmail(
        to=to,
        subject=subject,
        html=env.get_template(f"{template}.html").render(**context),
        text=env.get_template(f"{template}.txt").render(**context),
    )


def acknowledgment_email(*, to: str, name: str, noun: str, eta: str) -> OutboundEmail:
    return render_email(
        "acknowledgment",
        to=to,
        subject=f"{noun.capitalize()} Received – News and Niche",
        name=name,
        noun=noun,
        eta=eta,
    )


def approval_email(*, to: str, name: str, noun: str, edit_url: str) -> OutboundEmail:
    return render_email(
        "approval",
        to=to,
        subject=f"{noun.capitalize()} Approved – Complete Your Draft",
        name=name,
        noun=noun,
        edit_url=edit_url,
    )


def rejection_email(*, to: str, name: str, noun: str, reason: str) -> OutboundEmail:
    return render_email(
        "rejection",
        to=to,
        subject=f"Update on Your {noun.title()}",
        name=name,
        noun=noun,
        reason=reason,
    )


def revision_email(
    *, to: str, name: str, noun: str, notes: str, submit_url: str
) -> OutboundEmail:
    """Revision requests close the submission; the submitter is sent back to the form."""
    return render_email(
        "revision",
        to=to,
        subject=f"Revisions Requested for Your {noun.title()}",
        name=name,
        noun=noun,
        notes=notes,
        submit_url=submit_url,
    )
