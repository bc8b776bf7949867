from sqlalchemy.exc import OperationalError


def _box_count(client, box_id):
    return client.get(f"/api/boxes/{box_id}").json()["itemCount"]


def test_end_to_end_counts(client):
    box = client.post("/api/boxes", json={"name": "Garage"}).json()
    assert box["itemCount"] == 0

    response = client.post("/api/items", json={"boxId": box["id"], "name": "Drill", "quantity": 2})
    assert response.status_code == 201
    item = response.json()
    assert item["quantity"] == 2
    assert _box_count(client, box["id"]) == 1

    assert client.delete(f"/api/items/{item['id']}").json() == {"success": True}
    assert _box_count(client, box["id"]) == 0

    assert client.delete(f"/api/boxes/{box['id']}").status_code == 200
    assert client.get(f"/api/boxes/{box['id']}").status_code == 404


def test_create_item_defaults(client, box):
    item = client.post("/api/items", json={"boxId": box["id"], "name": "Tape"}).json()
    assert item["description"] == ""
    assert item["quantity"] == 1
    assert item["image"] == "/item-placeholder.svg"
    assert item["boxId"] == box["id"]


def test_blank_image_gets_placeholder(client, box):
    item = client.post("/api/items", json={"boxId": box["id"], "name": "Tape", "image": "   "}).json()
    assert item["image"] == "/item-placeholder.svg"

    photo = "data:image/jpeg;base64,/9j/4AAQSkZJRg=="
    item = client.post("/api/items", json={"boxId": box["id"], "name": "Glue", "image": photo}).json()
    assert item["image"] == photo


def test_zero_quantity_defaults_and_negative_is_rejected(client, box):
    item = client.post("/api/items", json={"boxId": box["id"], "name": "Tape", "quantity": 0}).json()
    assert item["quantity"] == 1

    response = client.post("/api/items", json={"boxId": box["id"], "name": "Tape", "quantity": -3})
    assert response.status_code == 400


def test_create_item_validation_and_unknown_box(client, box):
    assert client.post("/api/items", json={"name": "Orphan"}).status_code == 400
    assert client.post("/api/items", json={"boxId": box["id"]}).status_code == 400

    response = client.post("/api/items", json={"boxId": "no-such-box", "name": "Orphan"})
    assert response.status_code == 404
    assert client.get("/api/items").json() == []


def test_get_missing_item_is_not_found(client):
    assert client.get("/api/items/nope").status_code == 404
    assert client.patch("/api/items/nope", json={"name": "x"}).status_code == 404


def test_delete_missing_item_has_no_side_effects(client, box):
    client.post("/api/items", json={"boxId": box["id"], "name": "Drill"})

    response = client.delete("/api/items/nope")
    assert response.status_code == 404
    assert _box_count(client, box["id"]) == 1


def test_update_item_fields(client, box):
    item = client.post("/api/items", json={"boxId": box["id"], "name": "Drill"}).json()

    updated = client.patch(
        f"/api/items/{item['id']}",
        json={"name": "Cordless drill", "description": "18V", "quantity": 3, "boxId": box["id"]},
    ).json()
    assert (updated["name"], updated["description"], updated["quantity"]) == ("Cordless drill", "18V", 3)
    assert _box_count(client, box["id"]) == 1


def test_moving_an_item_adjusts_both_counts(client, box):
    attic = client.post("/api/boxes", json={"name": "Attic"}).json()
    item = client.post("/api/items", json={"boxId": box["id"], "name": "Lights"}).json()

    response = client.patch(f"/api/items/{item['id']}", json={"boxId": attic["id"]})
    assert response.status_code == 200
    assert response.json()["boxId"] == attic["id"]
    assert _box_count(client, box["id"]) == 0
    assert _box_count(client, attic["id"]) == 1


def test_moving_to_a_missing_box_changes_nothing(client, box):
    item = client.post("/api/items", json={"boxId": box["id"], "name": "Lights"}).json()

    response = client.patch(f"/api/items/{item['id']}", json={"boxId": "no-such-box", "name": "Renamed"})
    assert response.status_code == 404
    assert client.get(f"/api/items/{item['id']}").json()["name"] == "Lights"
    assert _box_count(client, box["id"]) == 1


def test_counts_match_items_after_mixed_operations(client):
    boxes = [client.post("/api/boxes", json={"name": name}).json() for name in ("A", "B", "C")]
    created = []
    for index in range(9):
        target = boxes[index % 3]
        created.append(client.post("/api/items", json={"boxId": target["id"], "name": f"item {index}"}).json())

    client.patch(f"/api/items/{created[0]['id']}", json={"boxId": boxes[2]["id"]})
    client.patch(f"/api/items/{created[1]['id']}", json={"boxId": boxes[2]["id"]})
    client.delete(f"/api/items/{created[2]['id']}")
    client.delete(f"/api/items/{created[5]['id']}")

    items = client.get("/api/items").json()
    for box in client.get("/api/boxes").json():
        assert box["itemCount"] == sum(1 for item in items if item["boxId"] == box["id"])


def test_list_items_filters_by_box_and_search(client, box):
    attic = client.post("/api/boxes", json={"name": "Attic"}).json()
    client.post("/api/items", json={"boxId": box["id"], "name": "Drill", "description": "Cordless"})
    client.post("/api/items", json={"boxId": box["id"], "name": "Tape measure"})
    client.post("/api/items", json={"boxId": attic["id"], "name": "Lights", "description": "cord reel"})

    in_garage = client.get("/api/items", params={"boxId": box["id"]}).json()
    assert sorted(item["name"] for item in in_garage) == ["Drill", "Tape measure"]

    cord = client.get("/api/items", params={"search": "CORD"}).json()
    assert sorted(item["name"] for item in cord) == ["Drill", "Lights"]

    cord_in_attic = client.get("/api/items", params={"search": "cord", "boxId": attic["id"]}).json()
    assert [item["name"] for item in cord_in_attic] == ["Lights"]


def test_pagination_returns_every_item_once_in_order(client, box):
    for index in range(23):
        client.post("/api/items", json={"boxId": box["id"], "name": f"item {index:02d}"})

    seen = []
    cursor = None
    pages = 0
    while True:
        params = {"limit": 5}
        if cursor:
            params["cursor"] = cursor
        response = client.get("/api/items", params=params)
        assert response.status_code == 200
        page = response.json()
        assert len(page["items"]) <= 5
        seen.extend(page["items"])
        pages += 1
        cursor = page["nextCursor"]
        if cursor is None:
            break

    assert pages == 5
    ids = [item["id"] for item in seen]
    assert len(ids) == len(set(ids)) == 23
    expected = sorted(seen, key=lambda item: (item["createdAt"], item["id"]), reverse=True)
    assert ids == [item["id"] for item in expected]


def test_exact_multiple_of_page_size_ends_with_null_cursor(client, box):
    for index in range(4):
        client.post("/api/items", json={"boxId": box["id"], "name": f"item {index}"})

    first = client.get("/api/items", params={"limit": 2}).json()
    assert first["nextCursor"]
    second = client.get("/api/items", params={"limit": 2, "cursor": first["nextCursor"]}).json()
    assert len(second["items"]) == 2
    assert second["nextCursor"] is None


def test_page_size_is_clamped(client, box):
    for index in range(3):
        client.post("/api/items", json={"boxId": box["id"], "name": f"item {index}"})

    page = client.get("/api/items", params={"limit": 0}).json()
    assert len(page["items"]) == 1

    page = client.get("/api/items", params={"limit": 500}).json()
    assert len(page["items"]) == 3
    assert page["nextCursor"] is None


def test_invalid_cursor_is_a_bad_request(client, box):
    assert client.get("/api/items", params={"cursor": "not a cursor"}).status_code == 400
    assert client.get("/api/items", params={"limit": "many"}).status_code == 400


def test_blank_item_names_are_rejected(client, box):
    assert client.post("/api/items", json={"boxId": box["id"], "name": "   "}).status_code == 400
    assert _box_count(client, box["id"]) == 0

    item = client.post("/api/items", json={"boxId": box["id"], "name": " Drill  "}).json()
    assert item["name"] == "Drill"
    assert client.patch(f"/api/items/{item['id']}", json={"name": "  "}).status_code == 400
    assert client.get(f"/api/items/{item['id']}").json()["name"] == "Drill"


def test_search_treats_wildcards_literally(client, box):
    client.post("/api/items", json={"boxId": box["id"], "name": "Shirt", "description": "100% cotton"})
    client.post("/api/items", json={"boxId": box["id"], "name": "snake_case labels"})
    client.post("/api/items", json={"boxId": box["id"], "name": "Drill"})

    percent = client.get("/api/items", params={"search": "%"}).json()
    assert [item["name"] for item in percent] == ["Shirt"]

    underscore = client.get("/api/items", params={"search": "_"}).json()
    assert [item["name"] for item in underscore] == ["snake_case labels"]


def test_store_failure_is_a_500_and_leaves_nothing_behind(client, box, monkeypatch):
    def failing_adjust(db, box_id, delta):
        raise OperationalError("UPDATE boxes", {}, Exception("disk I/O error"))

    monkeypatch.setattr("boxbox.routes.items.adjust_item_count", failing_adjust)

    response = client.post("/api/items", json={"boxId": box["id"], "name": "Drill"})
    assert response.status_code == 500
    assert response.json() == {"detail": "Database error"}

    monkeypatch.undo()
    assert client.get("/api/items").json() == []
    assert _box_count(client, box["id"]) == 0
