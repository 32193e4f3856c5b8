"""Tests for forwarded/quoted content removal and the PDF document helpers."""

from __future__ import annotations

from inbound_apps.transform.forwarded import (
    BRANDING_FOOTER,
    add_branding_footer,
    remove_forwarded_content,
    wrap_text_in_html,
)


class TestRemoveForwardedContent:
    def test_gmail_forward_block_removed(self) -> None:
        html = (
            '<div dir="ltr"><p>FYI, see below.</p>'
            '<div class="gmail_quote">'
            '<div class="gmail_attr">---------- Forwarded message ---------<br>'
            "From: Bob &lt;bob@example.com&gt;</div>"
            "<p>The original message</p></div></div>"
        )

        cleaned = remove_forwarded_content(html)

        assert "FYI, see below." in cleaned
        assert "The original message" not in cleaned
        assert "Forwarded message" not in cleaned

    def test_blockquotes_removed(self) -> None:
        cleaned = remove_forwarded_content(
            "<p>My answer</p><blockquote><p>Your question</p></blockquote>"
        )

        assert cleaned == "<p>My answer</p>"

    def test_class_match_is_case_insensitive(self) -> None:
        cleaned = remove_forwarded_content(
            '<p>Keep</p><div class="MsgQuoteBlock">quoted</div><div class="FORWARDED">fwd</div>'
        )

        assert cleaned == "<p>Keep</p>"

    def test_client_containers_removed(self) -> None:
        html = (
            "<p>Top</p>"
            '<div class="yahoo_quoted">yahoo</div>'
            '<div class="moz-cite-prefix">On 1/1 Bob wrote:</div>'
            '<div id="x" class="OutlookMessageHeader">outlook</div>'
        )

        assert remove_forwarded_content(html) == "<p>Top</p>"

    def test_text_separators_removed(self) -> None:
        html = (
            "<p>Please review.</p>"
            "<p>-----Original Message-----</p>"
            "<p>On Mon, Jan 13, 2025 at 9:00 AM Bob wrote:</p>"
        )

        cleaned = remove_forwarded_content(html)

        assert cleaned == "<p>Please review.</p>"

    def test_outlook_header_block_removed(self) -> None:
        html = (
            "<div><p>See the thread.</p></div>"
            "<div><p>From: Bob<br>Sent: Monday<br>To: Alice<br>Subject: Budget</p></div>"
        )

        cleaned = remove_forwarded_content(html)

        assert "See the thread." in cleaned
        assert "Sent: Monday" not in cleaned
        assert "Subject: Budget" not in cleaned

    def test_comments_stay_comments(self) -> None:
        html = "<p>Hi</p><!-- On Monday Bob wrote: secret note -->"

        cleaned = remove_forwarded_content(html)

        assert cleaned == "<p>Hi</p><!-- On Monday Bob wrote: secret note -->"

    def test_script_and_style_text_untouched(self) -> None:
        html = (
            "<style>p:after { content: 'On Monday Bob wrote: x'; }</style>"
            '<script>var s = "On Monday Bob wrote: y";</script>'
            "<p>Body</p>"
        )

        cleaned = remove_forwarded_content(html)

        assert "content: 'On Monday Bob wrote: x';" in cleaned
        assert 'var s = "On Monday Bob wrote: y";' in cleaned

    def test_plain_message_kept(self) -> None:
        assert remove_forwarded_content("<p>Hello   there</p>\n\n<p>Bye</p>") == (
            "<p>Hello there</p><p>Bye</p>"
        )


class TestBrandingFooter:
    def test_inserted_inside_body(self) -> None:
        html = add_branding_footer("<html><body><p>Hi</p></body></html>")

        assert html.endswith(f"{BRANDING_FOOTER}</body></html>")

    def test_appended_without_body(self) -> None:
        assert add_branding_footer("<p>Hi</p>") == "<p>Hi</p>" + BRANDING_FOOTER


class TestWrapTextInHtml:
    def test_paragraphs_and_line_breaks(self) -> None:
        html = wrap_text_in_html("Hello\nthere\n\nSecond paragraph\n\n\n")

        assert "<p>Hello<br>there</p>" in html
        assert "<p>Second paragraph</p>" in html
        assert html.count("<p>") == 2

    def test_text_is_escaped(self) -> None:
        html = wrap_text_in_html("1 < 2 & <script>")

        assert "<p>1 &lt; 2 &amp; &lt;script&gt;</p>" in html
        assert html.startswith("<!DOCTYPE html>")
