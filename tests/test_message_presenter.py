"""Tests for the message presenter."""

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from memberhub.exceptions import MessageRendered
from memberhub.web.message import ButtonMode, MessagePresenter, PresenterState


def render(presenter: MessagePresenter, content: str, headline: str = ""):
    """Render a message and return the response it terminated the request with."""
    with pytest.raises(MessageRendered) as exc_info:
        asyncio.run(presenter.render(content, headline))
    return exc_info.value.response


class TestButtons:
    def test_back_button_by_default(self, http_request):
        assert MessagePresenter(http_request).button_mode is ButtonMode.BACK

    def test_hidden_buttons_win(self, http_request):
        presenter = MessagePresenter(http_request)
        presenter.set_forward_yes_no("/delete")
        presenter.hide_buttons()
        assert presenter.button_mode is ButtonMode.NONE

    def test_forward_and_yes_no(self, http_request):
        presenter = MessagePresenter(http_request)
        presenter.set_forward_url("/done")
        assert presenter.button_mode is ButtonMode.FORWARD
        presenter.set_forward_yes_no("/delete")
        assert presenter.button_mode is ButtonMode.YES_NO

    def test_modal_without_forward_has_no_buttons(self, http_request):
        presenter = MessagePresenter(http_request)
        presenter.show_in_modal_window()
        assert presenter.button_mode is ButtonMode.NONE


class TestRender:
    def test_full_page_with_forward_button(self, http_request):
        presenter = MessagePresenter(http_request, language="en")
        presenter.set_forward_url("/done")

        response = render(presenter, "All done")
        body = response.body.decode()

        assert response.media_type == "text/html"
        assert "<html" in body
        assert body.count('href="/done"') == 1
        assert ">Next</a>" in body
        assert "<h1 class=\"h3 mb-3\">Note</h1>" in body
        assert "setTimeout" not in body
        assert presenter.state is PresenterState.RENDERED

    def test_timer_adds_redirect_script(self, http_request):
        presenter = MessagePresenter(http_request, language="en")
        presenter.set_forward_url("/done", timer_ms=2000)

        body = render(presenter, "Redirecting").body.decode()

        assert "setTimeout" in body
        assert '"/done"' in body
        assert "2000" in body

    def test_text_only_strips_markup(self, http_request):
        presenter = MessagePresenter(http_request)
        presenter.show_text_only(True)

        response = render(presenter, "<b>Saved</b>")

        assert response.body == b"Saved"
        assert response.media_type == "text/plain"

    def test_text_only_keeps_line_breaks(self, http_request):
        presenter = MessagePresenter(http_request)
        presenter.show_text_only(True)

        response = render(presenter, "<b>First</b> line\nSecond line")

        assert response.body == b"First line\nSecond line"

    def test_html_text_only_keeps_markup(self, http_request):
        presenter = MessagePresenter(http_request)
        presenter.show_html_text_only(True)

        assert render(presenter, "<b>Saved</b>").body == b"<b>Saved</b>"

    def test_modal_fragment(self, http_request):
        presenter = MessagePresenter(http_request, language="en")
        presenter.show_in_modal_window()

        body = render(presenter, "Deleted", headline="Done").body.decode()

        assert "<html" not in body
        assert "modal-header" in body
        assert "Done" in body
        assert "history.back()" not in body

    def test_yes_no_buttons(self, http_request):
        presenter = MessagePresenter(http_request, language="en")
        presenter.set_forward_yes_no("/delete?id=1")

        body = render(presenter, "Really delete?").body.decode()

        assert 'href="/delete?id=1"' in body
        assert ">Yes</a>" in body
        assert "history.back()" in body
        assert ">No</button>" in body

    def test_inline_when_headers_already_sent(self, http_request):
        presenter = MessagePresenter(http_request, language="en", headers_sent=True)

        body = render(presenter, "Partial page").body.decode()

        assert "<html" not in body
        assert "<h1>Note</h1>" in body
        assert '<div class="message">' in body

    def test_headline_is_localized(self, http_request):
        presenter = MessagePresenter(http_request, language="de", headers_sent=True)

        body = render(presenter, "Text").body.decode()

        assert "<h1>Hinweis</h1>" in body
        assert ">Zurück</button>" in body

    def test_theme_body_can_be_left_out(self, http_request):
        with_theme = MessagePresenter(http_request, language="en")
        without_theme = MessagePresenter(http_request, language="en")
        without_theme.show_theme_body(False)

        assert "theme-simple-header" in render(with_theme, "Text").body.decode()
        assert "theme-simple-header" not in render(without_theme, "Text").body.decode()

    def test_rolls_back_open_transaction(self, http_request):
        db = Mock()
        db.rollback = AsyncMock()
        presenter = MessagePresenter(http_request, db=db)

        render(presenter, "Aborted")

        db.rollback.assert_awaited_once()

    def test_rendered_presenter_cannot_be_reused(self, http_request):
        presenter = MessagePresenter(http_request)
        render(presenter, "Once")

        with pytest.raises(RuntimeError):
            presenter.hide_buttons()
        with pytest.raises(RuntimeError):
            asyncio.run(presenter.render("Twice"))
