"""
Tests for prompt endpoints.

Covers:
- Create / get / patch / delete of the prompt aggregate
- updatedAt semantics: content fields advance it, metadata fields don't
- Usage tracking on read
- Listing with category, favorite and tag filters, sorting and pagination
- Copy, tag replacement and version management
- Cross-user isolation
"""
import asyncio
from datetime import datetime

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from tests.api.conftest import (
    API,
    FAKE_UUID,
    create_category,
    create_prompt,
    create_user2_client,
)


def _ts(value: str) -> datetime:
    """Parse an API timestamp for ordering comparisons."""
    return datetime.fromisoformat(value).replace(tzinfo=None)


# =============================================================================
# Create
# =============================================================================


async def test__create_prompt__creates_first_version(client: AsyncClient) -> None:
    """A new prompt has exactly one version labeled v1."""
    response = await client.post(
        f"{API}/prompts",
        json={
            "title": "Refactor",
            "content": "Do X",
            "description": "Cleanup helper",
            "systemPrompt": "You are terse.",
            "modelTarget": "claude",
            "tags": ["Python", " review "],
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["title"] == "Refactor"
    assert data["description"] == "Cleanup helper"
    assert data["isFavorite"] is False
    assert data["isPinned"] is False
    assert data["usageCount"] == 0
    assert data["categoryId"] is None
    assert data["tags"] == ["python", "review"]

    assert len(data["versions"]) == 1
    version = data["versions"][0]
    assert version["versionLabel"] == "v1"
    assert version["modelTarget"] == "claude"
    assert version["content"] == "Do X"
    assert version["systemPrompt"] == "You are terse."
    assert version["isActive"] is True
    assert version["promptId"] == data["id"]


async def test__create_prompt__model_target_defaults_to_universal(
    client: AsyncClient,
) -> None:
    """Without modelTarget the first version targets "universal"."""
    data = await create_prompt(client)
    assert data["versions"][0]["modelTarget"] == "universal"
    assert data["versions"][0]["systemPrompt"] is None


async def test__create_prompt__token_estimate(client: AsyncClient) -> None:
    """Versions report ceil((content + system prompt) / 4) tokens."""
    data = await create_prompt(client, content="x" * 9, systemPrompt="y" * 4)
    assert data["versions"][0]["tokenEstimate"] == 3 + 1


async def test__create_prompt__missing_title_returns_400(client: AsyncClient) -> None:
    """Title is required."""
    response = await client.post(f"{API}/prompts", json={"content": "Do X"})
    assert response.status_code == 400
    assert response.json()["detail"] == "title is required"


async def test__create_prompt__blank_content_returns_400(client: AsyncClient) -> None:
    """Whitespace-only content counts as missing."""
    response = await client.post(f"{API}/prompts", json={"title": "T", "content": "   "})
    assert response.status_code == 400
    assert response.json()["detail"] == "Content is required"


@pytest.mark.parametrize("tags", [[1], "abc", ["ok", {"name": "x"}]])
async def test__create_prompt__malformed_tags_return_400(
    client: AsyncClient,
    tags: object,
) -> None:
    """Tags must be a list of strings; nothing is created otherwise."""
    response = await client.post(
        f"{API}/prompts", json={"title": "T", "content": "C", "tags": tags},
    )
    assert response.status_code == 400

    listing = await client.get(f"{API}/prompts")
    assert listing.json()["total"] == 0
    assert (await client.get(f"{API}/tags")).json() == []


async def test__create_prompt__null_tags_means_no_tags(client: AsyncClient) -> None:
    """An explicit null is treated like an omitted tag list."""
    response = await client.post(
        f"{API}/prompts", json={"title": "T", "content": "C", "tags": None},
    )
    assert response.status_code == 201
    assert response.json()["tags"] == []


async def test__create_prompt__with_category(client: AsyncClient) -> None:
    """The category is embedded in the response."""
    category = await create_category(client, "Coding")
    data = await create_prompt(client, categoryId=category["id"])
    assert data["categoryId"] == category["id"]
    assert data["category"]["name"] == "Coding"
    assert data["category"]["slug"] == "coding"


async def test__create_prompt__unknown_category_returns_404(client: AsyncClient) -> None:
    """Referencing a category that doesn't exist is rejected."""
    response = await client.post(
        f"{API}/prompts",
        json={"title": "T", "content": "C", "categoryId": FAKE_UUID},
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Category not found"


async def test__create_prompt__other_users_category_returns_404(
    client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    """Prompts can only be filed under the caller's own categories."""
    category = await create_category(client, "Coding")

    async with create_user2_client(db_session) as user2_client:
        response = await user2_client.post(
            f"{API}/prompts",
            json={"title": "T", "content": "C", "categoryId": category["id"]},
        )
        assert response.status_code == 404


# =============================================================================
# Get / usage tracking
# =============================================================================


async def test__get_prompt__increments_usage_count_per_read(client: AsyncClient) -> None:
    """Each read counts once; the increment is visible on the next read."""
    prompt = await create_prompt(client)
    url = f"{API}/prompts/{prompt['id']}"

    counts = [(await client.get(url)).json()["usageCount"] for _ in range(3)]
    assert counts == [0, 1, 2]


async def test__get_prompt__does_not_advance_updated_at(client: AsyncClient) -> None:
    """Usage is not an edit."""
    prompt = await create_prompt(client)
    await asyncio.sleep(0.01)

    await client.get(f"{API}/prompts/{prompt['id']}")
    data = (await client.get(f"{API}/prompts/{prompt['id']}")).json()
    assert data["usageCount"] == 1
    assert _ts(data["updatedAt"]) == _ts(prompt["updatedAt"])


async def test__get_prompt__unknown_id_returns_404(client: AsyncClient) -> None:
    """Unknown prompts are not found."""
    response = await client.get(f"{API}/prompts/{FAKE_UUID}")
    assert response.status_code == 404
    assert response.json()["detail"] == "Prompt not found"


async def test__get_prompt__invalid_id_returns_400(client: AsyncClient) -> None:
    """Malformed ids are a bad request."""
    response = await client.get(f"{API}/prompts/not-a-uuid")
    assert response.status_code == 400


# =============================================================================
# Update
# =============================================================================


async def test__update_prompt__favorite_leaves_updated_at_unchanged(
    client: AsyncClient,
) -> None:
    """isFavorite is metadata."""
    prompt = await create_prompt(client)
    await asyncio.sleep(0.01)

    response = await client.patch(
        f"{API}/prompts/{prompt['id']}",
        json={"isFavorite": True, "isPinned": True},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["isFavorite"] is True
    assert data["isPinned"] is True
    assert _ts(data["updatedAt"]) == _ts(prompt["updatedAt"])


async def test__update_prompt__category_change_leaves_updated_at_unchanged(
    client: AsyncClient,
) -> None:
    """categoryId is metadata."""
    category = await create_category(client, "Coding")
    prompt = await create_prompt(client)
    await asyncio.sleep(0.01)

    response = await client.patch(
        f"{API}/prompts/{prompt['id']}",
        json={"categoryId": category["id"]},
    )
    data = response.json()
    assert data["categoryId"] == category["id"]
    assert data["category"]["slug"] == "coding"
    assert _ts(data["updatedAt"]) == _ts(prompt["updatedAt"])


async def test__update_prompt__title_advances_updated_at(client: AsyncClient) -> None:
    """title is content."""
    prompt = await create_prompt(client)
    await asyncio.sleep(0.01)

    response = await client.patch(
        f"{API}/prompts/{prompt['id']}",
        json={"title": "Refactor thoroughly"},
    )
    data = response.json()
    assert data["title"] == "Refactor thoroughly"
    assert _ts(data["updatedAt"]) > _ts(prompt["updatedAt"])


async def test__update_prompt__description_advances_updated_at(client: AsyncClient) -> None:
    """description is content."""
    prompt = await create_prompt(client)
    await asyncio.sleep(0.01)

    response = await client.patch(
        f"{API}/prompts/{prompt['id']}",
        json={"description": "New"},
    )
    data = response.json()
    assert data["description"] == "New"
    assert _ts(data["updatedAt"]) > _ts(prompt["updatedAt"])


async def test__update_prompt__mixed_fields_apply_both(client: AsyncClient) -> None:
    """A patch with both groups applies metadata and content."""
    prompt = await create_prompt(client)
    await asyncio.sleep(0.01)

    response = await client.patch(
        f"{API}/prompts/{prompt['id']}",
        json={"isFavorite": True, "title": "Both"},
    )
    data = response.json()
    assert data["isFavorite"] is True
    assert data["title"] == "Both"
    assert _ts(data["updatedAt"]) > _ts(prompt["updatedAt"])


async def test__update_prompt__unknown_fields_are_ignored(client: AsyncClient) -> None:
    """Keys outside the editable set don't change anything."""
    prompt = await create_prompt(client)

    response = await client.patch(
        f"{API}/prompts/{prompt['id']}",
        json={"usageCount": 99, "userId": FAKE_UUID},
    )
    assert response.status_code == 200
    assert response.json()["usageCount"] == 0


async def test__update_prompt__clear_category(client: AsyncClient) -> None:
    """An explicit null categoryId files the prompt as uncategorized."""
    category = await create_category(client, "Coding")
    prompt = await create_prompt(client, categoryId=category["id"])

    response = await client.patch(f"{API}/prompts/{prompt['id']}", json={"categoryId": None})
    assert response.json()["categoryId"] is None


async def test__update_prompt__blank_title_returns_400(client: AsyncClient) -> None:
    """A provided title must not be blank."""
    prompt = await create_prompt(client)
    response = await client.patch(f"{API}/prompts/{prompt['id']}", json={"title": " "})
    assert response.status_code == 400


# =============================================================================
# Delete
# =============================================================================


async def test__delete_prompt__removes_prompt(client: AsyncClient) -> None:
    """Deleted prompts are gone."""
    prompt = await create_prompt(client)

    response = await client.delete(f"{API}/prompts/{prompt['id']}")
    assert response.status_code == 204
    assert (await client.get(f"{API}/prompts/{prompt['id']}")).status_code == 404


async def test__delete_prompt__removes_collection_membership(client: AsyncClient) -> None:
    """A deleted prompt disappears from its collections."""
    prompt = await create_prompt(client)
    collection = (await client.post(f"{API}/collections", json={"name": "Daily"})).json()
    await client.post(
        f"{API}/collections/{collection['id']}/prompts",
        json={"promptId": prompt["id"]},
    )

    await client.delete(f"{API}/prompts/{prompt['id']}")

    detail = (await client.get(f"{API}/collections/{collection['id']}")).json()
    assert detail["prompts"] == []


# =============================================================================
# List
# =============================================================================


async def test__list_prompts__concrete_scenario(client: AsyncClient) -> None:
    """Category -> prompt -> second version -> filtered list shows 2 versions."""
    category = await create_category(client, "Coding")
    assert category["slug"] == "coding"
    prompt = await create_prompt(client, "Refactor", "Do X", categoryId=category["id"])
    await create_prompt(client, "Elsewhere", "Other")

    response = await client.post(
        f"{API}/prompts/{prompt['id']}/versions",
        json={"modelTarget": "claude", "content": "Do X better"},
    )
    assert response.status_code == 201

    response = await client.get(f"{API}/prompts", params={"category": category["id"]})
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 1
    assert len(data["prompts"]) == 1
    versions = data["prompts"][0]["versions"]
    assert [v["versionLabel"] for v in versions] == ["v1", "v2"]
    assert versions[1]["modelTarget"] == "claude"
    assert versions[1]["content"] == "Do X better"


async def test__list_prompts__default_sort_is_updated_at_desc(client: AsyncClient) -> None:
    """Most recently updated prompts come first."""
    first = await create_prompt(client, "First")
    await asyncio.sleep(0.01)
    second = await create_prompt(client, "Second")
    await asyncio.sleep(0.01)
    await client.patch(f"{API}/prompts/{first['id']}", json={"title": "First edited"})

    data = (await client.get(f"{API}/prompts")).json()
    assert [p["id"] for p in data["prompts"]] == [first["id"], second["id"]]


async def test__list_prompts__sort_by_title(client: AsyncClient) -> None:
    """sort=title orders A-Z."""
    for title in ["Charlie", "Alpha", "Bravo"]:
        await create_prompt(client, title)

    data = (await client.get(f"{API}/prompts", params={"sort": "title"})).json()
    assert [p["title"] for p in data["prompts"]] == ["Alpha", "Bravo", "Charlie"]


async def test__list_prompts__sort_by_usage_count(client: AsyncClient) -> None:
    """sort=usageCount puts the most used prompts first."""
    rare = await create_prompt(client, "Rare")
    popular = await create_prompt(client, "Popular")
    for _ in range(3):
        await client.get(f"{API}/prompts/{popular['id']}")
    await client.get(f"{API}/prompts/{rare['id']}")

    data = (await client.get(f"{API}/prompts", params={"sort": "usageCount"})).json()
    assert [p["id"] for p in data["prompts"]] == [popular["id"], rare["id"]]
    assert [p["usageCount"] for p in data["prompts"]] == [3, 1]


async def test__list_prompts__invalid_sort_returns_400(client: AsyncClient) -> None:
    """Only the documented sort keys are accepted."""
    response = await client.get(f"{API}/prompts", params={"sort": "random"})
    assert response.status_code == 400


async def test__list_prompts__favorite_filter(client: AsyncClient) -> None:
    """favorite=true keeps favorites only."""
    liked = await create_prompt(client, "Liked")
    await create_prompt(client, "Meh")
    await client.patch(f"{API}/prompts/{liked['id']}", json={"isFavorite": True})

    data = (await client.get(f"{API}/prompts", params={"favorite": "true"})).json()
    assert data["total"] == 1
    assert data["prompts"][0]["id"] == liked["id"]


async def test__list_prompts__tag_filter(client: AsyncClient) -> None:
    """tag keeps prompts carrying that tag (case-insensitive)."""
    tagged = await create_prompt(client, "Tagged", tags=["python"])
    await create_prompt(client, "Other", tags=["rust"])
    await create_prompt(client, "Untagged")

    data = (await client.get(f"{API}/prompts", params={"tag": "Python"})).json()
    assert data["total"] == 1
    assert data["prompts"][0]["id"] == tagged["id"]


async def test__list_prompts__pagination(client: AsyncClient) -> None:
    """page/limit slice the result; total and totalPages describe the full set."""
    for i in range(5):
        await create_prompt(client, f"P{i}")

    page1 = (await client.get(f"{API}/prompts", params={"limit": 2, "page": 1})).json()
    page3 = (await client.get(f"{API}/prompts", params={"limit": 2, "page": 3})).json()
    page4 = (await client.get(f"{API}/prompts", params={"limit": 2, "page": 4})).json()

    assert page1["total"] == 5
    assert page1["totalPages"] == 3
    assert page1["page"] == 1
    assert len(page1["prompts"]) == 2
    assert len(page3["prompts"]) == 1
    assert page4["prompts"] == []


async def test__list_prompts__empty(client: AsyncClient) -> None:
    """No prompts means zero pages."""
    data = (await client.get(f"{API}/prompts")).json()
    assert data == {"prompts": [], "total": 0, "page": 1, "totalPages": 0}


async def test__list_prompts__limit_over_100_returns_400(client: AsyncClient) -> None:
    """Page size is capped."""
    response = await client.get(f"{API}/prompts", params={"limit": 101})
    assert response.status_code == 400


async def test__list_prompts__only_own_prompts(
    client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    """Other users' prompts are never listed."""
    await create_prompt(client)

    async with create_user2_client(db_session) as user2_client:
        data = (await user2_client.get(f"{API}/prompts")).json()
        assert data["total"] == 0


# =============================================================================
# Copy
# =============================================================================


async def test__copy_prompt__duplicates_versions_and_tags(client: AsyncClient) -> None:
    """The copy has a new id, a suffixed title, the same versions and tags."""
    category = await create_category(client, "Coding")
    original = await create_prompt(
        client, "Refactor", "Do X", categoryId=category["id"], tags=["python", "ai"],
    )
    await client.post(
        f"{API}/prompts/{original['id']}/versions",
        json={"modelTarget": "claude", "content": "Do X better", "notes": "tuned"},
    )
    await client.patch(f"{API}/prompts/{original['id']}", json={"isFavorite": True})

    response = await client.post(f"{API}/prompts/{original['id']}/copy")
    assert response.status_code == 201
    copy = response.json()

    assert copy["id"] != original["id"]
    assert copy["title"] == "Refactor (copy)"
    assert copy["categoryId"] == category["id"]
    assert copy["tags"] == ["ai", "python"]
    assert copy["isFavorite"] is False
    assert copy["usageCount"] == 0
    assert [(v["versionLabel"], v["modelTarget"], v["content"], v["notes"])
            for v in copy["versions"]] == [
        ("v1", "universal", "Do X", None),
        ("v2", "claude", "Do X better", "tuned"),
    ]
    assert all(v["promptId"] == copy["id"] for v in copy["versions"])


async def test__copy_prompt__does_not_copy_collection_membership(
    client: AsyncClient,
) -> None:
    """The copy starts outside every collection."""
    original = await create_prompt(client)
    collection = (await client.post(f"{API}/collections", json={"name": "Daily"})).json()
    await client.post(
        f"{API}/collections/{collection['id']}/prompts",
        json={"promptId": original["id"]},
    )

    copy = (await client.post(f"{API}/prompts/{original['id']}/copy")).json()

    detail = (await client.get(f"{API}/collections/{collection['id']}")).json()
    assert [p["id"] for p in detail["prompts"]] == [original["id"]]
    assert copy["id"] not in [p["id"] for p in detail["prompts"]]


async def test__copy_prompt__other_users_prompt_returns_404(
    client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    """Users cannot copy each other's prompts."""
    prompt = await create_prompt(client)

    async with create_user2_client(db_session) as user2_client:
        response = await user2_client.post(f"{API}/prompts/{prompt['id']}/copy")
        assert response.status_code == 404


# =============================================================================
# Tags
# =============================================================================


async def test__replace_prompt_tags__replaces_full_set(client: AsyncClient) -> None:
    """PUT tags replaces (not merges) and normalizes names."""
    prompt = await create_prompt(client, tags=["python", "old"])
    await asyncio.sleep(0.01)

    response = await client.put(
        f"{API}/prompts/{prompt['id']}/tags",
        json={"tags": ["Python", "New ", "new"]},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["tags"] == ["new", "python"]
    assert _ts(data["updatedAt"]) == _ts(prompt["updatedAt"])


async def test__replace_prompt_tags__empty_list_clears_tags(client: AsyncClient) -> None:
    """An empty list removes every tag."""
    prompt = await create_prompt(client, tags=["python"])

    response = await client.put(f"{API}/prompts/{prompt['id']}/tags", json={"tags": []})
    assert response.json()["tags"] == []


# =============================================================================
# Versions
# =============================================================================


async def test__create_version__defaults(client: AsyncClient) -> None:
    """An empty body yields v{n+1}, universal and empty content."""
    prompt = await create_prompt(client)

    response = await client.post(f"{API}/prompts/{prompt['id']}/versions", json={})
    assert response.status_code == 201
    data = response.json()
    assert data["versionLabel"] == "v2"
    assert data["modelTarget"] == "universal"
    assert data["content"] == ""
    assert data["promptId"] == prompt["id"]


async def test__create_version__keeps_prompt_updated_at(client: AsyncClient) -> None:
    """Appending a version is not a prompt content edit."""
    prompt = await create_prompt(client)
    await asyncio.sleep(0.01)

    await client.post(f"{API}/prompts/{prompt['id']}/versions", json={"content": "v2 text"})

    detail = (await client.get(f"{API}/prompts/{prompt['id']}")).json()
    assert len(detail["versions"]) == 2
    assert _ts(detail["updatedAt"]) == _ts(prompt["updatedAt"])


async def test__create_version__stores_variables(client: AsyncClient) -> None:
    """Template-variable metadata is stored as given."""
    prompt = await create_prompt(client)
    variables = [{"name": "language", "default": "python"}]

    response = await client.post(
        f"{API}/prompts/{prompt['id']}/versions",
        json={"versionLabel": "experiment", "content": "Use {{language}}", "variables": variables},
    )
    data = response.json()
    assert data["versionLabel"] == "experiment"
    assert data["variables"] == variables


async def test__update_version__sparse_update(client: AsyncClient) -> None:
    """Only provided fields change."""
    prompt = await create_prompt(client, systemPrompt="Be brief")
    version_id = prompt["versions"][0]["id"]

    response = await client.patch(
        f"{API}/prompts/{prompt['id']}/versions/{version_id}",
        json={"content": "Do Y", "isActive": False},
    )
    assert response.status_code == 200
    data = response.json()
    assert data["content"] == "Do Y"
    assert data["isActive"] is False
    assert data["systemPrompt"] == "Be brief"
    assert data["versionLabel"] == "v1"


async def test__update_version__wrong_prompt_returns_404(client: AsyncClient) -> None:
    """A version is only reachable through its own prompt."""
    first = await create_prompt(client, "First")
    second = await create_prompt(client, "Second")
    version_id = first["versions"][0]["id"]

    response = await client.patch(
        f"{API}/prompts/{second['id']}/versions/{version_id}",
        json={"content": "hijack"},
    )
    assert response.status_code == 404
    assert response.json()["detail"] == "Version not found"


async def test__update_version__other_users_prompt_returns_404(
    client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    """Version ownership is checked through the prompt's owner."""
    prompt = await create_prompt(client)
    version_id = prompt["versions"][0]["id"]

    async with create_user2_client(db_session) as user2_client:
        response = await user2_client.patch(
            f"{API}/prompts/{prompt['id']}/versions/{version_id}",
            json={"content": "hijack"},
        )
        assert response.status_code == 404


async def test__delete_version__last_version_is_rejected(client: AsyncClient) -> None:
    """A prompt always keeps at least one version."""
    prompt = await create_prompt(client)
    version_id = prompt["versions"][0]["id"]

    response = await client.delete(f"{API}/prompts/{prompt['id']}/versions/{version_id}")
    assert response.status_code == 400
    assert response.json()["detail"] == "Cannot delete the only version of a prompt"

    detail = (await client.get(f"{API}/prompts/{prompt['id']}")).json()
    assert len(detail["versions"]) == 1


async def test__delete_version__removes_one_of_many(client: AsyncClient) -> None:
    """Non-last versions can be deleted."""
    prompt = await create_prompt(client)
    v2 = (await client.post(f"{API}/prompts/{prompt['id']}/versions", json={})).json()

    response = await client.delete(f"{API}/prompts/{prompt['id']}/versions/{v2['id']}")
    assert response.status_code == 204

    detail = (await client.get(f"{API}/prompts/{prompt['id']}")).json()
    assert [v["versionLabel"] for v in detail["versions"]] == ["v1"]


# =============================================================================
# Cross-user isolation
# =============================================================================


async def test__prompt_endpoints__other_users_prompt_returns_404(
    client: AsyncClient,
    db_session: AsyncSession,
) -> None:
    """Every per-prompt operation treats other users' prompts as missing."""
    prompt = await create_prompt(client)
    url = f"{API}/prompts/{prompt['id']}"

    async with create_user2_client(db_session) as user2_client:
        assert (await user2_client.get(url)).status_code == 404
        assert (await user2_client.patch(url, json={"title": "x"})).status_code == 404
        assert (await user2_client.put(f"{url}/tags", json={"tags": []})).status_code == 404
        assert (await user2_client.post(f"{url}/versions", json={})).status_code == 404
        assert (await user2_client.delete(url)).status_code == 404

    # Untouched for the owner, including usage
    detail = (await client.get(url)).json()
    assert detail["title"] == prompt["title"]
    assert detail["usageCount"] == 0
