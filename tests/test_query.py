from datetime import datetime, timedelta

import pytest

from blog_platform.db.models import Post
from blog_platform.schemas import PostCreate
from blog_platform.services import posts as posts_service
from blog_platform.services.query import (
    DEFAULT_PAGE_SIZE,
    MAX_PAGE_SIZE,
    PageRequest,
    PostFilter,
    query_posts,
    run_query,
)
from tests.helpers import FakePost

DAY = datetime(2024, 1, 1)


def corpus():
    return [
        FakePost("Python tips", content="Use list comprehensions", tags=["python", "tips"],
                 published=True, published_at=DAY + timedelta(days=1)),
        FakePost("Cooking pasta", content="Boil water. Add PYTHON-shaped pasta.",
                 tags=["food"], published=True, published_at=DAY + timedelta(days=3)),
        FakePost("Draft notes", content="nothing here", excerpt="A python excerpt",
                 tags=["notes"]),
        FakePost("Rust ownership", content="Borrow checker", tags=["rust", "tips"],
                 published=True, published_at=DAY + timedelta(days=2)),
        FakePost("Gardening", content="Tomatoes", tags=[], published=False,
                 published_at=DAY + timedelta(days=5)),
    ]


def titles(items):
    return [item.title for item in items]


class TestPageRequest:
    def test_defaults(self):
        request = PageRequest.normalize()
        assert (request.page, request.page_size) == (1, DEFAULT_PAGE_SIZE)

    @pytest.mark.parametrize("page", [0, -3, None])
    def test_non_positive_page_becomes_first(self, page):
        assert PageRequest.normalize(page, 5).page == 1

    @pytest.mark.parametrize("page_size", [0, -1, None])
    def test_non_positive_page_size_falls_back_to_default(self, page_size):
        assert PageRequest.normalize(1, page_size).page_size == DEFAULT_PAGE_SIZE

    def test_page_size_is_capped(self):
        assert PageRequest.normalize(1, MAX_PAGE_SIZE * 5).page_size == MAX_PAGE_SIZE

    def test_offset(self):
        assert PageRequest.normalize(3, 4).offset == 8


class TestInMemoryQuery:
    def test_no_filter_returns_everything_in_order(self):
        result = query_posts(corpus(), PostFilter(), PageRequest(1, 10))
        assert result.total == 5
        assert titles(result.items) == [
            "Gardening", "Cooking pasta", "Rust ownership", "Python tips", "Draft notes",
        ]

    def test_search_is_case_insensitive_across_fields(self):
        result = query_posts(corpus(), PostFilter.build(search="PyThOn"), PageRequest(1, 10))
        # title match, content match and excerpt match all count
        assert sorted(titles(result.items)) == ["Cooking pasta", "Draft notes", "Python tips"]

    def test_content_match_without_title_match(self):
        result = query_posts(corpus(), PostFilter.build(search="borrow"), PageRequest(1, 10))
        assert titles(result.items) == ["Rust ownership"]

    def test_blank_search_is_ignored(self):
        result = query_posts(corpus(), PostFilter.build(search="   "), PageRequest(1, 10))
        assert result.total == 5

    def test_search_is_literal(self):
        posts = [FakePost("100% done"), FakePost("1000 done")]
        result = query_posts(posts, PostFilter.build(search="0%"), PageRequest(1, 10))
        assert titles(result.items) == ["100% done"]

    def test_tags_are_or_across_requested_tags(self):
        result = query_posts(corpus(), PostFilter.build(tags=["food", "rust"]), PageRequest(1, 10))
        assert titles(result.items) == ["Cooking pasta", "Rust ownership"]

    def test_post_without_overlap_is_excluded(self):
        result = query_posts(corpus(), PostFilter.build(tags=["nope"]), PageRequest(1, 10))
        assert result.total == 0
        assert result.items == []

    def test_search_and_tags_combine_with_and(self):
        post_filter = PostFilter.build(search="python", tags=["tips"])
        result = query_posts(corpus(), post_filter, PageRequest(1, 10))
        assert titles(result.items) == ["Python tips"]

    def test_published_filter(self):
        published = query_posts(corpus(), PostFilter(published=True), PageRequest(1, 10))
        drafts = query_posts(corpus(), PostFilter(published=False), PageRequest(1, 10))
        assert published.total == 3
        assert sorted(titles(drafts.items)) == ["Draft notes", "Gardening"]

    def test_ordering_by_published_at_then_nulls_last(self):
        posts = [
            FakePost("day 1", published_at=DAY + timedelta(days=1)),
            FakePost("never"),
            FakePost("day 3", published_at=DAY + timedelta(days=3)),
            FakePost("day 2", published_at=DAY + timedelta(days=2)),
        ]
        result = query_posts(posts, PostFilter(), PageRequest(1, 10))
        assert titles(result.items) == ["day 3", "day 2", "day 1", "never"]

    def test_created_at_breaks_ties(self):
        posts = [
            FakePost("older", created_at=DAY),
            FakePost("newer", created_at=DAY + timedelta(hours=1)),
        ]
        result = query_posts(posts, PostFilter(), PageRequest(1, 10))
        assert titles(result.items) == ["newer", "older"]

    @pytest.mark.parametrize("page_size", [1, 2, 3, 4, 5, 7])
    def test_pages_partition_the_result(self, page_size):
        posts = corpus()
        first = query_posts(posts, PostFilter(), PageRequest(1, page_size))
        seen = []
        for page in range(1, first.total_pages + 1):
            result = query_posts(posts, PostFilter(), PageRequest(page, page_size))
            assert len(result.items) <= page_size
            assert result.total == first.total
            seen.extend(result.items)
        assert len(seen) == first.total
        assert titles(seen) == titles(query_posts(posts, PostFilter(), PageRequest(1, 100)).items)

    def test_total_pages(self):
        assert query_posts(corpus(), PostFilter(), PageRequest(1, 2)).total_pages == 3
        assert query_posts(corpus(), PostFilter(), PageRequest(1, 5)).total_pages == 1

    def test_empty_result_has_zero_pages(self):
        result = query_posts([], PostFilter(), PageRequest(1, 10))
        assert (result.total, result.total_pages, result.items) == (0, 0, [])

    def test_page_past_the_end_is_empty(self):
        result = query_posts(corpus(), PostFilter(), PageRequest(9, 2))
        assert result.items == []
        assert result.total == 5
        assert result.page == 9


class TestSqlQuery:
    @pytest.fixture
    def seeded(self, db):
        for fake in corpus():
            post = posts_service.create_post(
                db,
                PostCreate(
                    title=fake.title,
                    content=fake.content,
                    excerpt=fake.excerpt,
                    tags=fake.tags,
                    published=fake.published,
                ),
            )
            post.published_at = fake.published_at
            post.created_at = fake.created_at
        db.commit()
        return db

    def test_matches_in_memory_execution(self, seeded):
        filters = [
            PostFilter(),
            PostFilter.build(search="PyThOn"),
            PostFilter.build(search="borrow"),
            PostFilter.build(tags=["food", "rust"]),
            PostFilter.build(search="python", tags=["tips"]),
            PostFilter(published=True),
            PostFilter(published=False),
        ]
        for post_filter in filters:
            expected = query_posts(corpus(), post_filter, PageRequest(1, 10))
            actual = run_query(seeded, post_filter, PageRequest(1, 10))
            assert actual.total == expected.total, post_filter
            assert titles(actual.items) == titles(expected.items), post_filter

    def test_non_ascii_search_matches_in_memory_execution(self, db):
        fakes = [
            FakePost("Café culture", content="x", created_at=DAY),
            FakePost("Straße notes", content="ÜBER alles", created_at=DAY + timedelta(hours=1)),
            FakePost("Plain cafe", content="x", created_at=DAY + timedelta(hours=2)),
        ]
        for fake in fakes:
            post = posts_service.create_post(db, PostCreate(title=fake.title, content=fake.content))
            post.created_at = fake.created_at
        db.commit()

        for search in ("CAFÉ", "café", "STRASSE", "straße", "über"):
            post_filter = PostFilter.build(search=search)
            expected = query_posts(fakes, post_filter, PageRequest(1, 10))
            actual = run_query(db, post_filter, PageRequest(1, 10))
            assert titles(actual.items) == titles(expected.items), search

        assert titles(run_query(db, PostFilter.build(search="CAFÉ"), PageRequest()).items) == [
            "Café culture"
        ]

    def test_page_past_the_end_skips_the_fetch(self, seeded):
        result = run_query(seeded, PostFilter(), PageRequest(10**17, MAX_PAGE_SIZE))
        assert result.items == []
        assert result.total == 5
        assert result.page == 10**17

    def test_pagination(self, seeded):
        page_one = run_query(seeded, PostFilter(), PageRequest(1, 2))
        page_three = run_query(seeded, PostFilter(), PageRequest(3, 2))
        past_end = run_query(seeded, PostFilter(), PageRequest(4, 2))

        assert titles(page_one.items) == ["Gardening", "Cooking pasta"]
        assert titles(page_three.items) == ["Draft notes"]
        assert page_one.total_pages == 3
        assert past_end.items == []
        assert past_end.total == 5

    def test_like_wildcards_are_escaped(self, db):
        for title in ("100% done", "1000 done", "snake_case tips", "snakecase notes"):
            posts_service.create_post(db, PostCreate(title=title, content="x"))

        assert titles(run_query(db, PostFilter.build(search="0%"), PageRequest()).items) == ["100% done"]
        assert titles(run_query(db, PostFilter.build(search="e_c"), PageRequest()).items) == ["snake_case tips"]

    def test_tag_filter_does_not_duplicate_rows(self, db):
        posts_service.create_post(db, PostCreate(title="Both", content="x", tags=["a", "b"]))
        result = run_query(db, PostFilter.build(tags=["a", "b"]), PageRequest())
        assert result.total == 1
        assert [post.title for post in result.items] == ["Both"]
        assert isinstance(result.items[0], Post)
