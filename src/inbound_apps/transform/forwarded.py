"""Forwarded and quoted content removal for the HTML-to-PDF receiver.

The body is parsed and cleaned structurally, in a fixed order:

1. client-specific quote containers (Gmail, Yahoo, Outlook, Thunderbird),
2. every ``<blockquote>``,
3. any ``<div>`` whose class mentions ``quote`` or ``forward``,
4. textual separators inside the remaining text ("Forwarded message"
   dividers, Outlook header blocks, "Original Message" dividers,
   "On ... wrote:" lines),
5. ``<div>``/``<p>`` containers left empty by the steps above.

Matching on class substrings is case-insensitive.
"""

from __future__ import annotations

import html as html_lib
import re

from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from inbound_apps.transform.html_cleanup import parse_html

# Step 1: client quote containers, matched as class substrings.
CLIENT_QUOTE_CLASSES: tuple[str, ...] = (
    "gmail_quote",  # Gmail quoted history (also gmail_quote_container)
    "gmail_attr",  # Gmail "---------- Forwarded message ---------" header
    "yahoo_quoted",  # Yahoo Mail
    "OutlookMessageHeader",  # Outlook
    "moz-cite-prefix",  # Thunderbird
)

# Step 3: generic class hints.
GENERIC_QUOTE_CLASSES: tuple[str, ...] = ("quote", "forward")

# Step 4: separators removed from text nodes, in order.
TEXT_SEPARATORS: tuple[re.Pattern[str], ...] = (
    re.compile(r"-{5,}\s*Forwarded\s+message\s*-{5,}", re.IGNORECASE),
    re.compile(r"From:.*?Sent:.*?To:.*?Subject:[^\n]*", re.IGNORECASE | re.DOTALL),
    re.compile(r"-{5,}\s*Original\s+Message\s*-{5,}", re.IGNORECASE),
    re.compile(r"On\s+[^\n]+?\s+wrote:", re.IGNORECASE),
)

NON_TEXT_PARENTS = frozenset({"script", "style", "template"})

_OUTLOOK_HEADER_BLOCK = re.compile(
    r"^\s*From:.*Sent:.*To:.*Subject:", re.IGNORECASE | re.DOTALL
)

BRANDING_FOOTER = """
    <div style="margin-top: 40px; padding: 20px; border-top: 2px solid #e5e7eb; text-align: center; font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;">
      <div style="display: inline-flex; align-items: center; justify-content: center; gap: 8px;">
        <span style="color: #6b7280; font-size: 14px;">generated via inbound.new</span>
        <img src="https://inbound.new/inbound-logo-png.png" alt="Inbound" style="height: 20px; width: 20px; vertical-align: middle;" />
      </div>
    </div>
  """

TEXT_DOCUMENT_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>Document</title>
  <style>
    body {{
      font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, 'Helvetica Neue', Arial, sans-serif;
      line-height: 1.6;
      color: #333;
      max-width: 800px;
      margin: 40px auto;
      padding: 20px;
    }}
    p {{
      margin-bottom: 1em;
    }}
  </style>
</head>
<body>
  {paragraphs}
</body>
</html>"""


def _decompose_all(elements: list[Tag]) -> int:
    removed = 0
    for element in elements:
        if element.decomposed:
            continue
        element.decompose()
        removed += 1
    return removed


def _remove_outlook_header_blocks(soup: BeautifulSoup) -> None:
    """Drop the innermost block whose text is an Outlook From/Sent/To/Subject header."""
    candidates = [
        tag
        for tag in soup.find_all(["div", "p"])
        if _OUTLOOK_HEADER_BLOCK.match(tag.get_text(" "))
    ]
    innermost = [
        tag
        for tag in candidates
        if not any(
            other is not tag and any(parent is tag for parent in other.parents)
            for other in candidates
        )
    ]
    _decompose_all(innermost)


def _strip_text_separators(soup: BeautifulSoup) -> None:
    for node in list(soup.find_all(string=True)):
        # Comments, doctypes and CDATA are not rendered; script and style are not text.
        if isinstance(node, PreformattedString) or not isinstance(node, NavigableString):
            continue
        if node.parent is not None and node.parent.name in NON_TEXT_PARENTS:
            continue
        text = str(node)
        cleaned = text
        for pattern in TEXT_SEPARATORS:
            cleaned = pattern.sub("", cleaned)
        if cleaned != text:
            node.replace_with(cleaned)


def _is_empty_container(tag: Tag) -> bool:
    return all(isinstance(child, NavigableString) and not child.strip() for child in tag.contents)


def _collapse_empty_containers(soup: BeautifulSoup) -> None:
    while True:
        empties = [tag for tag in soup.find_all(["div", "p"]) if _is_empty_container(tag)]
        if not empties:
            return
        _decompose_all(empties)


def remove_forwarded_content(html: str) -> str:
    """Remove forwarded headers and quoted history from an HTML email.

    Args:
        html: The HTML email body.

    Returns:
        The cleaned HTML with whitespace collapsed.

    Raises:
        ProcessingError: If the markup cannot be parsed.
    """
    soup = parse_html(html)

    for marker in CLIENT_QUOTE_CLASSES:
        _decompose_all(soup.select(f'div[class*="{marker}" i]'))

    _decompose_all(soup.find_all("blockquote"))

    for marker in GENERIC_QUOTE_CLASSES:
        _decompose_all(soup.select(f'div[class*="{marker}" i]'))

    _remove_outlook_header_blocks(soup)
    _strip_text_separators(soup)
    _collapse_empty_containers(soup)

    cleaned = re.sub(r"\s{2,}", " ", str(soup))
    cleaned = re.sub(r">\s+<", "><", cleaned)
    return cleaned.strip()


def add_branding_footer(html: str) -> str:
    """Append the branding footer, inside ``<body>`` when the document has one."""
    if "</body>" in html:
        return html.replace("</body>", f"{BRANDING_FOOTER}</body>", 1)
    return html + BRANDING_FOOTER


def wrap_text_in_html(text: str) -> str:
    """Wrap a plain-text body in a minimal, readable HTML document.

    Blank lines separate paragraphs; single newlines become ``<br>``.
    """
    paragraphs = "\n".join(
        "<p>" + html_lib.escape(block).replace("\n", "<br>") + "</p>"
        for block in text.split("\n\n")
        if block.strip()
    )
    return TEXT_DOCUMENT_TEMPLATE.format(paragraphs=paragraphs)
