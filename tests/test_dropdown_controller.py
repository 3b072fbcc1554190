"""End-to-end tests for the dropdown controller against in-memory sources."""

import pytest

from filterbar.dropdown import DropdownController
from filterbar.models.types import DropdownStatus

from conftest import LABEL_TITLES, LONG_TITLE, SCOPE, CountingSource


def titles(controller):
    return [item.title for item in controller.state.filtered]


def make_controller(source, cache, **kwargs):
    return DropdownController(source, cache=cache, scope_key=SCOPE, **kwargs)


async def open_at(controller, query, cursor=None):
    await controller.set_input(query, cursor)
    await controller.wait_until_loaded()


class TestLoading:
    """Tests for opening the dropdown and the loading indicator."""

    @pytest.mark.asyncio
    async def test_shows_loading_then_hides(self, label_source, cache):
        source = CountingSource(label_source, gated=True)
        controller = make_controller(source, cache)

        await controller.set_input("label:")
        assert controller.is_loading
        assert controller.state.status is DropdownStatus.LOADING

        source.release()
        await controller.wait_until_loaded()

        assert not controller.is_loading
        assert controller.is_open

    @pytest.mark.asyncio
    async def test_loads_all_labels(self, label_source, cache):
        controller = make_controller(label_source, cache)

        await open_at(controller, "label:")

        assert titles(controller) == LABEL_TITLES
        assert controller.state.items[0].title == "No Label"

    @pytest.mark.asyncio
    async def test_plain_text_does_not_fetch(self, counting_source, cache):
        controller = make_controller(counting_source, cache)

        await open_at(controller, "searchTerm")

        assert not controller.is_open
        assert counting_source.calls == []

    @pytest.mark.asyncio
    async def test_blur_closes(self, label_source, cache):
        controller = make_controller(label_source, cache)
        await open_at(controller, "label:")

        controller.blur()

        assert not controller.is_open

    @pytest.mark.asyncio
    async def test_focus_reopens_from_cache(self, counting_source, cache):
        controller = make_controller(counting_source, cache)
        await open_at(controller, "label:")
        controller.blur()

        await controller.focus()

        assert controller.is_open
        assert len(counting_source.calls) == 1

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "query",
        [
            "label:~bug-label label:",
            "label:~bug-label label: ",
            'author:@person label:~"High Priority" label:',
        ],
    )
    async def test_opens_with_existing_content(self, label_source, cache, query):
        controller = make_controller(label_source, cache)

        await open_at(controller, query)

        assert controller.is_open
        assert controller.token.key.key == "label"


class TestFiltering:
    """Tests for narrowing the loaded candidates."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "query,expected",
        [
            ("label:b", ["bug-label", "BUG-LABEL"]),
            ("label:~bu", ["bug-label", "BUG-LABEL"]),
            ("label:Hig", ["High Priority"]),
            ("label:~\"won't", ["Won't Fix"]),
            ("label:~'won\"t", ['Won"t Fix']),
            ("label:~^+", ["!@#$%^+&*()"]),
            ("label:long", [LONG_TITLE]),
        ],
    )
    async def test_filters_by_fragment(self, label_source, cache, query, expected):
        controller = make_controller(label_source, cache)

        await open_at(controller, query)

        assert titles(controller) == expected

    @pytest.mark.asyncio
    async def test_typing_after_open_refilters(self, counting_source, cache):
        controller = make_controller(counting_source, cache)
        await open_at(controller, "label:")

        await controller.type_text("~Hig")

        assert titles(controller) == ["High Priority"]
        assert len(counting_source.calls) == 1

    @pytest.mark.asyncio
    async def test_typing_while_loading_uses_latest_text(self, label_source, cache):
        source = CountingSource(label_source, gated=True)
        controller = make_controller(source, cache)

        await controller.set_input("label:")
        await controller.type_text("~bu")
        source.release()
        await controller.wait_until_loaded()

        assert titles(controller) == ["bug-label", "BUG-LABEL"]

    @pytest.mark.asyncio
    async def test_user_keys_share_candidates(self, label_source, cache):
        controller = make_controller(label_source, cache)

        await open_at(controller, "author:@ro")
        assert titles(controller) == ["root"]
        assert controller.state.sentinels == ()

        await open_at(controller, "author:@root assignee:")
        assert [item.title for item in controller.state.items] == ["No Assignee", "person", "root"]


class TestSelection:
    """Tests for committing values back into the query."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "title,expected",
        [
            ("bug-label", "label:~bug-label "),
            ("High Priority", 'label:~"High Priority" '),
            ('Won"t Fix', "label:~'Won\"t Fix' "),
            ("Won't Fix", 'label:~"Won\'t Fix" '),
            ("!@#$%^+&*()", "label:~!@#$%^+&*() "),
            ("No Label", "label:none "),
        ],
    )
    async def test_click_writes_quoted_value(self, label_source, cache, title, expected):
        controller = make_controller(label_source, cache)
        await open_at(controller, "label:")

        result = controller.select_title(title)

        assert result == expected
        assert controller.query == expected
        assert controller.cursor == len(expected)
        assert not controller.is_open

    @pytest.mark.asyncio
    async def test_replaces_only_the_active_token(self, label_source, cache):
        controller = make_controller(label_source, cache)
        await open_at(controller, "author:@person label:~Hi")

        assert controller.select_title("High Priority") == 'author:@person label:~"High Priority" '

    @pytest.mark.asyncio
    async def test_edits_token_in_the_middle(self, label_source, cache):
        controller = make_controller(label_source, cache)
        await open_at(controller, "label:~bu author:@person", 9)

        assert controller.select_title("BUG-LABEL") == "label:~BUG-LABEL author:@person"

    @pytest.mark.asyncio
    async def test_keyboard_down_down_enter(self, label_source, cache):
        controller = make_controller(label_source, cache)
        await open_at(controller, "label:")

        controller.move_selection(1)
        controller.move_selection(1)

        assert controller.commit() == "label:~bug-label "

    @pytest.mark.asyncio
    async def test_hover_then_enter(self, label_source, cache):
        controller = make_controller(label_source, cache)
        await open_at(controller, "label:")

        controller.hover(3)

        assert controller.commit() == 'label:~"High Priority" '

    @pytest.mark.asyncio
    async def test_dismiss_then_enter_commits_nothing(self, label_source, cache):
        controller = make_controller(label_source, cache)
        await open_at(controller, "label:")

        controller.dismiss()

        assert controller.commit() is None
        assert controller.query == "label:"

    @pytest.mark.asyncio
    async def test_enter_after_typing_none_commits_sentinel(self, label_source, cache):
        controller = make_controller(label_source, cache)
        await open_at(controller, "label:")

        await controller.type_text("none")

        assert [item.title for item in controller.state.items] == ["No Label"]
        assert controller.commit() == "label:none "

    @pytest.mark.asyncio
    async def test_foreign_sigil_lists_everything(self, label_source, cache):
        controller = make_controller(label_source, cache)
        await open_at(controller, "label:%")

        assert titles(controller) == LABEL_TITLES
        assert controller.select_title("bug-label") == "label:~bug-label "

    @pytest.mark.asyncio
    async def test_unknown_title_selects_nothing(self, label_source, cache):
        controller = make_controller(label_source, cache)
        await open_at(controller, "label:")

        assert controller.select_title("no-such-label") is None
        assert controller.is_open

    @pytest.mark.asyncio
    async def test_callbacks(self, label_source, cache):
        states = []
        queries = []
        controller = make_controller(
            label_source,
            cache,
            on_state_update=states.append,
            on_query_update=lambda query, cursor: queries.append((query, cursor)),
        )

        await open_at(controller, "label:")
        controller.select_title("bug-label")

        statuses = [state.status for state in states]
        assert DropdownStatus.LOADING in statuses
        assert DropdownStatus.OPEN in statuses
        assert statuses[-1] is DropdownStatus.CLOSED
        assert queries == [("label:~bug-label ", len("label:~bug-label "))]

    @pytest.mark.asyncio
    async def test_clear_closes_and_keeps_cache(self, counting_source, cache):
        controller = make_controller(counting_source, cache)
        await open_at(controller, "label:~bu")

        controller.clear()
        assert controller.query == ""
        assert not controller.is_open

        await open_at(controller, "label:")
        assert len(counting_source.calls) == 1


class TestCaching:
    """Tests for candidate reuse across opens."""

    @pytest.mark.asyncio
    async def test_values_added_after_first_load_stay_hidden(self, label_source, cache):
        source = CountingSource(label_source)
        controller = make_controller(source, cache)
        await open_at(controller, "label:")
        controller.select_title("bug-label")

        label_source.add(SCOPE, "labels", "new-label")
        await controller.type_text("label:")

        assert not controller.is_loading
        assert controller.is_open
        assert "new-label" not in titles(controller)
        assert source.calls == [(SCOPE, "label")]

    @pytest.mark.asyncio
    async def test_reopen_counts_as_cache_hit(self, label_source, cache):
        controller = make_controller(label_source, cache)
        await open_at(controller, "label:")
        controller.clear()

        await open_at(controller, "label:")

        stats = cache.stats
        assert stats.misses == 1
        assert stats.hits == 1
        assert stats.fetches == 1
        assert stats.hit_rate == 50.0

    @pytest.mark.asyncio
    async def test_change_scope_refetches(self, label_source, cache):
        source = CountingSource(label_source)
        controller = make_controller(source, cache)
        await open_at(controller, "label:")

        label_source.add("other", "labels", "other-label")
        await controller.change_scope("other")
        await controller.wait_until_loaded()

        assert titles(controller) == ["other-label"]
        assert source.calls == [(SCOPE, "label"), ("other", "label")]
        assert cache.get(SCOPE, "label") is None

    @pytest.mark.asyncio
    async def test_controllers_share_one_fetch(self, label_source, cache):
        source = CountingSource(label_source, gated=True)
        first = make_controller(source, cache)
        second = make_controller(source, cache)

        await first.set_input("label:")
        await second.set_input("label:~High")
        source.release()
        await first.wait_until_loaded()
        await second.wait_until_loaded()

        assert len(source.calls) == 1
        assert len(titles(first)) == len(LABEL_TITLES)
        assert titles(second) == ["High Priority"]

    @pytest.mark.asyncio
    async def test_blur_while_loading_still_caches(self, label_source, cache):
        source = CountingSource(label_source, gated=True)
        controller = make_controller(source, cache)

        await controller.set_input("label:")
        controller.blur()
        source.release()
        await controller.wait_until_loaded()

        assert not controller.is_open
        assert cache.get(SCOPE, "label") is not None

        await controller.focus()
        assert controller.is_open
        assert len(source.calls) == 1


class TestFailures:
    """Tests for a failing data fetch."""

    @pytest.mark.asyncio
    async def test_failure_closes_with_error(self, label_source, cache):
        source = CountingSource(label_source, error=ConnectionError("boom"))
        controller = make_controller(source, cache)

        await open_at(controller, "label:")

        assert not controller.is_open
        assert not controller.is_loading
        assert "boom" in controller.error
        assert cache.get(SCOPE, "label") is None

    @pytest.mark.asyncio
    async def test_retry_after_leaving_the_token(self, label_source, cache):
        source = CountingSource(label_source, error=ConnectionError("boom"))
        controller = make_controller(source, cache)
        await open_at(controller, "label:")

        source.error = None
        await open_at(controller, "label:b")
        assert not controller.is_open

        await open_at(controller, "")
        assert controller.error is None
        await open_at(controller, "label:")

        assert controller.is_open
        assert len(source.calls) == 2
