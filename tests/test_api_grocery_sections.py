from larder.models import GrocerySection


def test_create_sections_appends_in_order(client, headers):
    response = client.post("/api/grocery-sections", json={"name": " Produce "}, headers=headers)
    assert response.status_code == 201
    assert response.json()["name"] == "Produce"
    assert response.json()["display_order"] == 1

    response = client.post("/api/grocery-sections", json={"name": "Dairy"}, headers=headers)
    assert response.json()["display_order"] == 2


def test_list_is_scoped_and_ordered(client, headers, db_session, user, other_user):
    db_session.add_all([
        GrocerySection(user_id=user.id, name="Freezer", display_order=3),
        GrocerySection(user_id=user.id, name="Bakery", display_order=1),
        GrocerySection(user_id=other_user.id, name="Cellar", display_order=0),
    ])
    db_session.commit()

    response = client.get("/api/grocery-sections", headers=headers)
    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["Bakery", "Freezer"]


def test_section_filters_groceries(client, headers):
    section = client.post("/api/grocery-sections", json={"name": "Spices", "display_order": 5}, headers=headers).json()
    assert section["display_order"] == 5

    client.post("/api/groceries", json={"name": "cumin", "section_id": section["id"]}, headers=headers)
    client.post("/api/groceries", json={"name": "bread"}, headers=headers)

    response = client.get("/api/groceries", params={"section_id": section["id"]}, headers=headers)
    assert [g["name"] for g in response.json()] == ["cumin"]


def test_blank_name_and_missing_user(client, headers):
    assert client.post("/api/grocery-sections", json={"name": "   "}, headers=headers).status_code == 422
    assert client.get("/api/grocery-sections").status_code == 401
