from notionlinks.client.query import CategoryGroup, QueryEngine

from conftest import make_record


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def _bookmarks():
    return [
        make_record("1", title="Flask docs", category="Work", tags=["python", "web"]),
        make_record("2", title="Sourdough", category="Cooking", tags=["bread"]),
        make_record(
            "3",
            title="Team wiki",
            category="Work",
            tags=["internal"],
            description="Onboarding notes",
        ),
        make_record("4", title="Loose link", category="Uncategorized"),
        make_record(
            "5", title="Art gallery", category="art", url="https://museum.example"
        ),
    ]


def _ids(records):
    return [record.id for record in records]


def test_category_filter_returns_only_that_category():
    engine = QueryEngine()
    engine.set_bookmarks(_bookmarks())

    engine.set_category("Work")
    view = engine.get_filtered_view()

    assert view == [
        CategoryGroup(category="Work", bookmarks=engine.filtered_bookmarks())
    ]
    assert _ids(view[0].bookmarks) == ["1", "3"]


def test_all_category_groups_alphabetically_with_uncategorized_last():
    engine = QueryEngine()
    engine.set_bookmarks(_bookmarks())
    engine.set_category("Work")
    engine.get_filtered_view()

    engine.set_category("all")
    view = engine.get_filtered_view()

    assert [group.category for group in view] == [
        "art",
        "Cooking",
        "Work",
        "Uncategorized",
    ]
    assert sum(len(group.bookmarks) for group in view) == 5


def test_tags_use_and_semantics():
    engine = QueryEngine(group_by_category=False)
    engine.set_bookmarks(
        [
            make_record("a", tags=["A"]),
            make_record("ab", tags=["A", "B"]),
            make_record("b", tags=["B"]),
        ]
    )

    engine.toggle_tag("A")
    engine.toggle_tag("B")
    assert _ids(engine.get_filtered_view()) == ["ab"]

    engine.toggle_tag("B")
    assert _ids(engine.get_filtered_view()) == ["a", "ab"]

    engine.clear_tags()
    assert _ids(engine.get_filtered_view()) == ["a", "ab", "b"]


def test_search_is_case_insensitive_across_fields_and_tags():
    engine = QueryEngine(group_by_category=False)
    engine.set_bookmarks(_bookmarks())

    engine.set_search_text("  FLASK ")
    assert _ids(engine.get_filtered_view()) == ["1"]

    engine.set_search_text("onboarding")
    assert _ids(engine.get_filtered_view()) == ["3"]

    engine.set_search_text("museum")
    assert _ids(engine.get_filtered_view()) == ["5"]

    engine.set_search_text("brea")
    assert _ids(engine.get_filtered_view()) == ["2"]

    engine.set_search_text("cooking")
    assert _ids(engine.get_filtered_view()) == ["2"]


def test_filters_combine_as_a_conjunction():
    engine = QueryEngine(group_by_category=False)
    engine.set_bookmarks(_bookmarks())

    engine.set_category("Work")
    engine.toggle_tag("python")
    engine.set_search_text("wiki")

    assert engine.get_filtered_view() == []


def test_identical_filter_state_returns_cached_view_object():
    engine = QueryEngine()
    engine.set_bookmarks(_bookmarks())

    engine.toggle_tag("python")
    first = engine.get_filtered_view()
    engine.toggle_tag("python")
    engine.toggle_tag("python")
    second = engine.get_filtered_view()

    assert second is first


def test_new_bookmarks_invalidate_cached_views():
    engine = QueryEngine(group_by_category=False)
    engine.set_bookmarks(_bookmarks())
    first = engine.get_filtered_view()

    engine.set_bookmarks([make_record("9")])
    second = engine.get_filtered_view()

    assert second is not first
    assert _ids(second) == ["9"]


def test_cached_view_expires_after_ttl():
    clock = FakeClock()
    engine = QueryEngine(cache_ttl=10, clock=clock)
    engine.set_bookmarks(_bookmarks())
    first = engine.get_filtered_view()

    clock.now = 11
    assert engine.get_filtered_view() is not first


def test_catalog_helpers():
    engine = QueryEngine()
    engine.set_bookmarks(
        [
            make_record("1", category="Work", tags=["a", "b"]),
            make_record("2", category="Home", tags=["a"]),
        ]
    )

    assert engine.categories() == ["Home", "Work"]
    assert engine.tags_with_count() == [("a", 2), ("b", 1)]
    assert engine.find_by_id("2").category == "Home"
    assert engine.find_by_id("missing") is None
    assert engine.stats() == {"total": 2, "filtered": 2, "categories": 2, "tags": 2}


def test_export_and_import_state_restore_filters():
    engine = QueryEngine()
    engine.set_bookmarks(_bookmarks())
    engine.set_category("Work")
    engine.toggle_tag("python")

    restored = QueryEngine()
    restored.import_state(engine.export_state())

    assert restored.filters == engine.filters
    assert _ids(restored.filtered_bookmarks()) == ["1"]

    restored.reset_filters()
    assert len(restored.filtered_bookmarks()) == 5
