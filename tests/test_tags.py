import pytest

from core.errors import InvalidInput, NotFound
from services import tags
from utils.seed_db import seed_catalog

pytestmark = pytest.mark.anyio


async def test_assign_then_reassign_replaces_intensity(db, make_user, make_tag):
    user = await make_user()
    blue = await make_tag("Blue", "left")

    first = await tags.assign_tag(db, user.id, blue.id, 4)
    assert first.intensity == 4

    again = await tags.assign_tag(db, user.id, blue.id, 9)
    assert again is first
    assert again.intensity == 9
    assigned = await tags.list_user_tags(db, user.id)
    assert len(assigned) == 1
    assert assigned[0].polarity == "left"
    assert assigned[0].tag.label == "Blue"


@pytest.mark.parametrize("intensity", [0, 11, -3, 5.5, True, "7"])
def test_validate_intensity_rejects(intensity):
    with pytest.raises(InvalidInput):
        tags.validate_intensity(intensity)


async def test_assign_unknown_tag(db, make_user):
    user = await make_user()
    with pytest.raises(NotFound):
        await tags.assign_tag(db, user.id, 98765, 5)
    with pytest.raises(InvalidInput):
        await tags.assign_tag(db, user.id, None, 5)


async def test_update_and_remove(db, make_user, make_tag, give_tag):
    user = await make_user()
    red = await make_tag("Red", "right")
    await give_tag(user, red, 3)

    updated = await tags.update_intensity(db, user.id, red.id, 7)
    assert updated.intensity == 7

    assert await tags.remove_tag(db, user.id, red.id)
    with pytest.raises(NotFound):
        await tags.remove_tag(db, user.id, red.id)
    with pytest.raises(NotFound):
        await tags.update_intensity(db, user.id, red.id, 2)


async def test_catalog_and_categories(db):
    await seed_catalog(db)

    catalog = await tags.list_catalog(db)
    classic = await tags.list_catalog(db, "classic")
    categories = {row["category"]: row["count"] for row in await tags.list_categories(db)}

    assert len(catalog) == 24
    assert {t.category for t in classic} == {"classic"}
    assert categories["classic"] == 10
    assert sum(categories.values()) == 24


async def test_search_ranks_exact_label_first(db, make_tag):
    await make_tag("Navy Blue", "left")
    await make_tag("Blue", "right")
    await make_tag("Light Blue", "left")

    found = await tags.search_catalog(db, "BLUE")

    assert [t.label for t in found] == ["Blue", "Light Blue", "Navy Blue"]
    with pytest.raises(InvalidInput):
        await tags.search_catalog(db, "  ")
