import json

import pytest

from sellexa.utils.response_format import ApiResult, create_api_error, create_api_result
from sellexa.utils.status import Status
from sellexa.utils.storage_urls import get_product_image_url, get_profile_avatar_url, get_storage_url

BASE_URL = "https://project.supabase.test"


def test_storage_urls() -> None:
    assert get_product_image_url("seller/1.jpg", BASE_URL) == (
        f"{BASE_URL}/storage/v1/object/public/product-images/seller/1.jpg"
    )
    assert get_profile_avatar_url("ada.png", BASE_URL + "/") == (
        f"{BASE_URL}/storage/v1/object/public/avatars/ada.png"
    )
    assert get_storage_url("avatars", "https://cdn.example/a.png", BASE_URL) == "https://cdn.example/a.png"
    assert get_storage_url("avatars", "", BASE_URL) is None
    assert get_storage_url("avatars", "a.png", "") is None


def test_api_result_envelopes() -> None:
    ok = create_api_result([1, 2])
    failed = create_api_error("Not signed in", Status.UNAUTHENTICATED)

    assert ok and ok.status is Status.SUCCESS
    assert not failed and failed.data is None
    assert json.loads(failed.to_json()) == {"success": False, "status": "03", "error": "Not signed in"}
    assert ok.to_dict() == {"success": True, "status": "00", "data": [1, 2]}


def test_api_result_from_dict() -> None:
    result = ApiResult.from_dict({"success": False, "error": 404, "status": "02"})

    assert result.error == "404"
    assert result.status is Status.NOT_FOUND

    with pytest.raises(ValueError):
        ApiResult.from_dict({"data": []})
    with pytest.raises(ValueError):
        ApiResult.from_dict({"success": True, "status": "zz"})
