"""Shared helpers for message templates.

Messages are Telegram-flavoured HTML. Every value that came from a user is
escaped, free text is clipped, and a line whose value is absent is dropped
rather than rendered with a placeholder.
"""

from html import escape

DEFAULT_TRUNCATE_AT = 200
ELLIPSIS = "…"


def clip(value, limit: int = DEFAULT_TRUNCATE_AT) -> str:
    """Clip ``value`` to at most ``limit`` characters, ending with an ellipsis when cut."""
    text = str(value).strip()
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + ELLIPSIS


def present(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return True


def esc(value) -> str:
    return escape(str(value), quote=False)


def field(context: dict, key: str, limit: int | None = None) -> str | None:
    """Escaped (and optionally clipped) value of ``context[key]``, or None when absent."""
    value = context.get(key)
    if not present(value):
        return None
    if limit is not None:
        value = clip(value, limit)
    return esc(str(value).strip())


def line(prefix: str, value: str | None) -> str | None:
    return f"{prefix} {value}" if value is not None else None


def join_lines(*lines) -> str:
    """Join the non-empty lines. A lone "" keeps a blank separator line."""
    kept = [entry for entry in lines if entry is not None]
    # Collapse separators that ended up doubled, leading or trailing
    collapsed: list[str] = []
    for entry in kept:
        if entry == "" and (not collapsed or collapsed[-1] == ""):
            continue
        collapsed.append(entry)
    while collapsed and collapsed[-1] == "":
        collapsed.pop()
    return "\n".join(collapsed)


def limit_for(context: dict) -> int:
    return int(context.get("truncate_at") or DEFAULT_TRUNCATE_AT)


def lead_title(context: dict) -> str | None:
    """Lead name, or its primary contact when the name is missing."""
    limit = limit_for(context)
    return field(context, "name", limit) or field(context, "phone") or field(context, "telegram") or field(
        context, "email"
    )


def contact_lines(context: dict) -> list[str | None]:
    return [
        line("📞", field(context, "phone")),
        line("📱", field(context, "telegram")),
        line("✉️", field(context, "email")),
    ]


def crm_link(context: dict) -> str | None:
    url = context.get("crm_url")
    if not present(url):
        return None
    return f'🔗 <a href="{escape(str(url).strip(), quote=True)}">Open CRM</a>'


def money(value) -> str:
    amount = float(value or 0)
    if amount.is_integer():
        return f"{int(amount):,}".replace(",", " ")
    return f"{amount:,.2f}".replace(",", " ")
