from validation import validate_project


def valid_project(**overrides):
    data = {
        "title": "Pixel Garden",
        "description": "A generative garden that grows from commit history.",
        "imageUrl": "https://images.example.com/garden.png",
        "linkUrl": "https://garden.example.com",
        "tags": ["generative", "canvas"],
        "status": "WIP",
    }
    data.update(overrides)
    return data


def test_valid_project_has_no_errors():
    assert validate_project(valid_project()) == {}


def test_five_field_errors():
    errors = validate_project({
        "title": "ab",
        "description": "short",
        "imageUrl": "",
        "linkUrl": "ftp://x",
        "status": "Bogus",
    })
    assert set(errors) == {"title", "description", "imageUrl", "linkUrl", "status"}


def test_missing_fields_are_required():
    errors = validate_project({})
    assert errors["title"] == "Title is required"
    assert errors["description"] == "Description is required"
    assert errors["imageUrl"] == "Image is required"
    assert errors["linkUrl"] == "Link URL is required"
    assert "status" in errors
    assert "tags" not in errors


def test_wrong_types_read_as_missing():
    errors = validate_project(valid_project(title=123, description=["x"]))
    assert errors == {"title": "Title is required", "description": "Description is required"}


def test_non_mapping_input_does_not_raise():
    assert "title" in validate_project(None)


def test_length_bounds_use_trimmed_text():
    assert "title" in validate_project(valid_project(title="  ab  "))
    assert "title" not in validate_project(valid_project(title="abc"))
    assert "title" in validate_project(valid_project(title="x" * 101))
    assert "description" in validate_project(valid_project(description="x" * 2001))


def test_partial_only_checks_present_fields():
    assert validate_project({"status": "Archived"}, is_partial=True) == {}
    assert set(validate_project({"title": "no"}, is_partial=True)) == {"title"}


def test_image_url_accepts_uploads_path():
    assert validate_project(valid_project(imageUrl="/uploads/1700000000000-garden.png")) == {}


def test_image_url_requires_https_while_link_url_takes_http():
    # external images must be https; project links may be http or https
    errors = validate_project(valid_project(imageUrl="http://images.example.com/a.png"))
    assert errors == {"imageUrl": "Image must be an uploaded file or an https:// URL"}
    assert validate_project(valid_project(linkUrl="http://garden.example.com")) == {}


def test_malformed_urls():
    assert validate_project(valid_project(imageUrl="https://"))["imageUrl"] == "Invalid URL format"
    assert validate_project(valid_project(linkUrl="https://[bad"))["linkUrl"] == "Invalid URL format"
    errors = validate_project(valid_project(imageUrl="https://exa mple.com/a.png", linkUrl="http://exa mple.com"))
    assert errors == {"imageUrl": "Invalid URL format", "linkUrl": "Invalid URL format"}
    assert validate_project(valid_project(linkUrl="https://localhost:8080/demo?x=1#top")) == {}


def test_tags_rules():
    assert validate_project(valid_project(tags="a,b"))["tags"] == "Tags must be an array"
    assert validate_project(valid_project(tags=[str(i) for i in range(11)]))["tags"] == "Maximum 10 tags allowed"
    assert "tags" in validate_project(valid_project(tags=["ok", "   "]))
    assert "tags" in validate_project(valid_project(tags=["x" * 21]))
    assert "tags" in validate_project(valid_project(tags=["ok", 5]))


def test_tags_checked_in_partial_mode():
    assert "tags" in validate_project({"tags": "nope"}, is_partial=True)
