"""backend.mes_clientのテスト (httpx.MockTransport使用)"""

import asyncio
import json
from urllib.parse import parse_qs

import httpx
import pytest

from backend.mes_client import MesApiClient, MesApiError
from schemas.mold import MoldSearchInfo

BASE_URL = "http://mes.test"


def envelope(data=None, code=200, msg="操作成功") -> dict:
    return {"code": code, "msg": msg, "data": data}


class Recorder:
    """受け取ったリクエストを記録し、固定の応答を返すハンドラ"""

    def __init__(self, response: httpx.Response | Exception) -> None:
        self.response = response
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


def make_client(handler: Recorder, token: str = "") -> MesApiClient:
    return MesApiClient(
        BASE_URL, token=token, timeout=5.0, transport=httpx.MockTransport(handler)
    )


def ok(data=None) -> Recorder:
    return Recorder(httpx.Response(200, json=envelope(data)))


class TestEnvelope:
    """応答封筒の処理のテスト"""

    def test_bearer_token_is_sent(self):
        handler = ok([])
        asyncio.run(make_client(handler, token="abc").get_team_list())

        assert handler.last.headers["Authorization"] == "Bearer abc"

    def test_no_token_no_header(self):
        handler = ok([])
        asyncio.run(make_client(handler).get_team_list())

        assert "Authorization" not in handler.last.headers

    def test_null_data_is_empty_list(self):
        """data が null の一覧は空リストとして扱うか"""
        handler = ok(None)

        assert asyncio.run(make_client(handler).get_process_list()) == []

    def test_non_200_code_raises_with_server_message(self):
        """封筒の code が 200 以外の場合はサーバーのmsgで例外になるか"""
        handler = Recorder(
            httpx.Response(200, json=envelope(code=500, msg="金型が存在しません"))
        )

        with pytest.raises(MesApiError) as exc_info:
            asyncio.run(make_client(handler).get_team_list())

        assert exc_info.value.code == 500
        assert exc_info.value.message == "金型が存在しません"

    def test_401_without_message_uses_default(self):
        """msg が無い場合はコードに応じた既定メッセージか"""
        handler = Recorder(httpx.Response(200, json={"code": 401}))

        with pytest.raises(MesApiError) as exc_info:
            asyncio.run(make_client(handler).get_team_list())

        assert exc_info.value.code == 401
        assert "認証" in exc_info.value.message

    def test_http_error_status(self):
        handler = Recorder(httpx.Response(404, text="not found"))

        with pytest.raises(MesApiError) as exc_info:
            asyncio.run(make_client(handler).get_team_list())

        assert exc_info.value.code == 404
        assert "404" in exc_info.value.message

    def test_timeout(self):
        handler = Recorder(httpx.ReadTimeout("timed out"))

        with pytest.raises(MesApiError, match="タイムアウト"):
            asyncio.run(make_client(handler).get_team_list())

    def test_connection_error(self):
        handler = Recorder(httpx.ConnectError("refused"))

        with pytest.raises(MesApiError, match="接続"):
            asyncio.run(make_client(handler).get_team_list())

    def test_non_json_body(self):
        handler = Recorder(httpx.Response(200, text="<html>"))

        with pytest.raises(MesApiError):
            asyncio.run(make_client(handler).get_team_list())

    def test_invalid_item_raises(self):
        """一覧の要素が検証に失敗した場合は例外になるか"""
        handler = ok([{"name": "no id"}])

        with pytest.raises(MesApiError):
            asyncio.run(make_client(handler).get_team_list())


class TestMoldEndpoints:
    """金型関連APIのテスト"""

    def test_search_mold_by_code(self):
        handler = ok([{"code": "PRJ001-001"}, {"code": "PRJ001-002"}])

        result = asyncio.run(make_client(handler).search_mold_by_code("PRJ"))

        assert result == ["PRJ001-001", "PRJ001-002"]
        assert handler.last.url.path == "/mould/info/getMouldCodeBySelect/PRJ"

    def test_search_mold_by_code_rejects_non_object_items(self):
        """候補が文字列の配列で返った場合は MesApiError になるか"""
        handler = ok(["AB-01", "AB-02"])

        with pytest.raises(MesApiError):
            asyncio.run(make_client(handler).search_mold_by_code("AB"))

    def test_list_mold_code_info_sends_repeated_exclusion_params(self):
        """除外一覧を mouldCodeArray の繰り返しパラメータで送るか"""
        handler = ok([{"mouldCode": "PRJ001-003", "makeOrderNumber": "MO-1"}])

        result = asyncio.run(
            make_client(handler).list_mold_code_info(
                "PRJ001", "D1", ["PRJ001-001", "PRJ001-002"]
            )
        )

        params = parse_qs(handler.last.url.query.decode())
        assert handler.last.method == "GET"
        assert params["mouldCode"] == ["PRJ001"]
        assert params["deviceId"] == ["D1"]
        assert params["mouldCodeArray"] == ["PRJ001-001", "PRJ001-002"]
        assert result[0].mould_code == "PRJ001-003"

    def test_list_mold_code_info_omits_empty_exclusion(self):
        handler = ok([])

        asyncio.run(make_client(handler).list_mold_code_info("PRJ001", "D1", None))

        assert "mouldCodeArray" not in parse_qs(handler.last.url.query.decode())

    def test_lock_sends_form_with_single_element_array(self):
        """ロック要求を1要素の配列 (JSON) と操作者名・設備IDのフォームで送るか"""
        handler = ok(None)
        mold = MoldSearchInfo(mould_code="PRJ001-003", craft_code="C1")

        asyncio.run(make_client(handler).lock_press_mold_code(mold, "1001", "D1"))

        request = handler.last
        form = parse_qs(request.content.decode())
        assert request.method == "POST"
        assert request.url.path == "/modbus/pressmouldJob/lockPressMouldCode"
        assert json.loads(form["choosedRowsStr"][0]) == [
            {"mouldCode": "PRJ001-003", "craftCode": "C1"}
        ]
        assert form["userName"] == ["1001"]
        assert form["deviceId"] == ["D1"]

    def test_unlock_sends_form(self):
        handler = ok(None)

        asyncio.run(make_client(handler).unlock_press_mould_code("A,B", "1001", "D1"))

        form = parse_qs(handler.last.content.decode())
        assert handler.last.url.path == "/modbus/pressmouldJob/unlockPressMouldCode"
        assert form["mouldCodes"] == ["A,B"]
        assert form["userName"] == ["1001"]
        assert form["deviceId"] == ["D1"]

    def test_select_locked_mould_info(self):
        handler = ok([{"mouldCode": "PRJ001-001", "operator": "1001"}])

        result = asyncio.run(make_client(handler).select_locked_mould_info("D1"))

        assert json.loads(handler.last.content) == {"deviceId": "D1"}
        assert result[0].mould_code == "PRJ001-001"
        assert result[0].operator == "1001"


class TestJobEndpoints:
    """設備・作業・参照データAPIのテスト"""

    def test_get_press_job_by_handle_ip(self):
        handler = ok([{"deviceId": 7, "mouldCode": "A,B"}])

        jobs = asyncio.run(make_client(handler).get_press_job_by_handle_ip())

        assert handler.last.url.path == "/modbus/device/getPressJobByHandleIp"
        assert jobs[0].device_id == "7"
        assert jobs[0].locked_codes == ["A", "B"]

    def test_list_modbus_device(self):
        handler = ok([{"deviceId": "D1", "deviceName": "プレス1号機"}])

        devices = asyncio.run(make_client(handler).list_modbus_device())

        assert devices[0].device_name == "プレス1号機"

    def test_get_personnel_list_filters_by_team(self):
        handler = ok([{"id": 1001, "name": "山田", "teamId": 1}])

        personnel = asyncio.run(make_client(handler).get_personnel_list("1"))

        assert parse_qs(handler.last.url.query.decode()) == {"teamId": ["1"]}
        assert personnel[0].id == "1001"

    def test_get_personnel_list_without_team(self):
        handler = ok([])

        asyncio.run(make_client(handler).get_personnel_list())

        assert handler.last.url.query == b""


class TestFromSettings:
    def test_from_settings(self, settings):
        client = MesApiClient.from_settings(settings)

        assert client.base_url == settings.MES_API_BASE_URL
        assert client.timeout == settings.MES_API_TIMEOUT
