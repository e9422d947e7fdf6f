"""Post service tests — the ownership gate and post lifecycle.

Learn: The key invariant: for a post created by A, any update/delete by
B ≠ A raises NotOwnerError and leaves title, content and owner exactly
as they were. NotOwnerError is never confused with PostNotFoundError.
"""

import pytest
import pytest_asyncio

from quill.errors import NotOwnerError, PostNotFoundError, ValidationError
from quill.services.post_service import PostService, clean_post_fields, summarize
from quill.services.user_service import UserService


@pytest_asyncio.fixture()
async def alice(db_session):
    return await UserService(db_session).register("alice@example.com", "secret1")


@pytest_asyncio.fixture()
async def bob(db_session):
    return await UserService(db_session).register("bob@example.com", "secret1")


@pytest_asyncio.fixture()
async def alice_post(db_session, alice):
    return await PostService(db_session).create_post(
        "Hi There", "This is long enough", owner_id=alice.id
    )


# ═══════════════════════════════════════════════════════════
# Create / read
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_create_trims_and_records_owner(db_session, alice):
    post = await PostService(db_session).create_post(
        "  Hello World  ", "\n  Plenty of content here  \n", owner_id=alice.id
    )
    assert post.id is not None
    assert post.title == "Hello World"
    assert post.content == "Plenty of content here"
    assert post.owner_id == alice.id
    assert post.owner.email == "alice@example.com"
    assert post.created_at is not None


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "title,content,field",
    [
        ("", "This is long enough", "title"),
        ("   ", "This is long enough", "title"),
        ("Hi", "This is long enough", "title"),
        ("  Hi  ", "This is long enough", "title"),
        ("Hi There", "", "content"),
        ("Hi There", "too short", "content"),
        ("Hi There", "   short   ", "content"),
        (None, "This is long enough", "title"),
    ],
)
async def test_create_validation(db_session, alice, title, content, field):
    with pytest.raises(ValidationError) as exc:
        await PostService(db_session).create_post(title, content, owner_id=alice.id)
    assert exc.value.field == field


def test_minimum_lengths_are_inclusive():
    assert clean_post_fields("abc", "0123456789") == ("abc", "0123456789")


@pytest.mark.asyncio
async def test_read_is_idempotent(db_session, alice_post):
    svc = PostService(db_session)
    first = await svc.get_post(alice_post.id)
    first_view = (first.title, first.content, first.owner_id)
    second = await svc.get_post(alice_post.id)
    assert (second.title, second.content, second.owner_id) == first_view


@pytest.mark.asyncio
async def test_get_missing_post_is_none(db_session):
    assert await PostService(db_session).get_post(12345) is None


@pytest.mark.asyncio
async def test_list_is_newest_first_and_filterable(db_session, alice, bob):
    svc = PostService(db_session)
    p1 = await svc.create_post("First post", "Content number one", owner_id=alice.id)
    p2 = await svc.create_post("Second post", "Content number two", owner_id=bob.id)
    p3 = await svc.create_post("Third post", "Content number three", owner_id=alice.id)

    assert [p.id for p in await svc.list_posts()] == [p3.id, p2.id, p1.id]
    assert [p.id for p in await svc.list_posts(owner_id=alice.id)] == [p3.id, p1.id]
    assert [p.id for p in await svc.list_posts(owner_id=bob.id)] == [p2.id]


# ═══════════════════════════════════════════════════════════
# Update: ownership gate
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_owner_can_update(db_session, alice, alice_post):
    post = await PostService(db_session).update_post(
        alice_post.id, " New Title ", " Brand new content ", requesting_user_id=alice.id
    )
    assert post.title == "New Title"
    assert post.content == "Brand new content"
    assert post.owner_id == alice.id


@pytest.mark.asyncio
async def test_non_owner_update_is_forbidden_and_changes_nothing(
    db_session, bob, alice, alice_post
):
    svc = PostService(db_session)
    with pytest.raises(NotOwnerError):
        await svc.update_post(
            alice_post.id, "Hijacked", "Hijacked content!!", requesting_user_id=bob.id
        )

    post = await svc.get_post(alice_post.id)
    assert post.title == "Hi There"
    assert post.content == "This is long enough"
    assert post.owner_id == alice.id


@pytest.mark.asyncio
async def test_ownership_is_checked_before_validation(db_session, bob, alice_post):
    with pytest.raises(NotOwnerError):
        await PostService(db_session).update_post(
            alice_post.id, "", "", requesting_user_id=bob.id
        )


@pytest.mark.asyncio
async def test_owner_update_still_validates(db_session, alice, alice_post):
    svc = PostService(db_session)
    with pytest.raises(ValidationError):
        await svc.update_post(alice_post.id, "Ok title", "short", requesting_user_id=alice.id)
    assert (await svc.get_post(alice_post.id)).content == "This is long enough"


@pytest.mark.asyncio
async def test_update_missing_post_is_not_found(db_session, alice):
    with pytest.raises(PostNotFoundError):
        await PostService(db_session).update_post(
            999, "Valid title", "Valid content here", requesting_user_id=alice.id
        )


# ═══════════════════════════════════════════════════════════
# Delete: ownership gate
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_non_owner_delete_is_forbidden(db_session, alice, bob, alice_post):
    svc = PostService(db_session)
    with pytest.raises(NotOwnerError):
        await svc.delete_post(alice_post.id, requesting_user_id=bob.id)

    post = await svc.get_post(alice_post.id)
    assert post is not None
    assert post.owner_id == alice.id


@pytest.mark.asyncio
async def test_owner_delete_then_gone(db_session, alice, alice_post):
    svc = PostService(db_session)
    await svc.delete_post(alice_post.id, requesting_user_id=alice.id)
    assert await svc.get_post(alice_post.id) is None

    # Deleting again is NotFound, not a silent success
    with pytest.raises(PostNotFoundError):
        await svc.delete_post(alice_post.id, requesting_user_id=alice.id)


# ═══════════════════════════════════════════════════════════
# Stats + summaries
# ═══════════════════════════════════════════════════════════


@pytest.mark.asyncio
async def test_stats(db_session, alice, bob):
    svc = PostService(db_session)
    for i in range(3):
        await svc.create_post(f"Alice post {i}", "Some body text here", owner_id=alice.id)
    await svc.create_post("Bob's post", "Some body text here", owner_id=bob.id)

    stats = await svc.stats()
    assert stats["total_posts"] == 4
    assert stats["posts_last_24_hours"] == 4
    assert stats["total_authors"] == 2
    assert stats["top_authors"][0] == {
        "owner_id": alice.id,
        "owner_email": "alice@example.com",
        "post_count": 3,
    }
    assert stats["top_authors"][1]["post_count"] == 1


@pytest.mark.asyncio
async def test_stats_empty(db_session):
    stats = await PostService(db_session).stats()
    assert stats == {
        "total_posts": 0,
        "posts_last_24_hours": 0,
        "total_authors": 0,
        "top_authors": [],
    }


def test_summarize_short_content_untouched():
    assert summarize("short and sweet", max_length=50) == "short and sweet"


def test_summarize_cuts_at_word_boundary():
    assert summarize("the quick brown fox jumps", max_length=12) == "the quick..."


def test_summarize_without_spaces():
    assert summarize("x" * 30, max_length=10) == "x" * 10 + "..."


@pytest.mark.parametrize(
    "title,content,field",
    [
        ("Bad \ud800 title", "This is long enough", "title"),
        ("Hi There", "Broken \udc00 text", "content"),
    ],
)
def test_unencodable_text_is_rejected(title, content, field):
    with pytest.raises(ValidationError) as exc:
        clean_post_fields(title, content)
    assert exc.value.field == field
