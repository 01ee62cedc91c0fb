"""MESバックエンドAPIクライアント

班・作業者・工法の参照、金型検索、金型ロック/解除、
端末IPからのプレス作業取得、設備一覧取得を行う。

応答は {code, msg, data} 形式の封筒で返る。code が 200 以外、
HTTPエラー、タイムアウト、接続エラー、応答形式不正はすべて
作業者向けメッセージ付きで MesApiError として送出する。
data が null の一覧は空リストとして扱う。
"""

import json
from typing import Any, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from backend.logging import mes_logger as logger
from config.settings import Settings
from schemas.job import ModbusDevice, Personnel, PressJob, Process, Team
from schemas.mold import LockedMold, MoldSearchInfo

ModelT = TypeVar("ModelT", bound=BaseModel)

# 応答コード → 作業者向けメッセージ
ERROR_MESSAGES: dict[int, str] = {
    401: "認証に失敗しました。再ログインしてください",
    403: "この操作を行う権限がありません",
    404: "アクセスしたリソースが存在しません",
    500: "サーバー内部エラー",
}
DEFAULT_ERROR_MESSAGE = "システム不明エラー"
NETWORK_ERROR_MESSAGE = "バックエンドAPIとの接続に失敗しました"
TIMEOUT_ERROR_MESSAGE = "システムAPIの要求がタイムアウトしました"
INVALID_RESPONSE_MESSAGE = "バックエンドAPIの応答形式が不正です"


class MesApiError(Exception):
    """MES API呼び出しの失敗

    Attributes:
        message: 作業者向けメッセージ
        code: 応答コード (HTTPステータスまたは封筒のcode)。通信失敗時はNone
    """

    def __init__(self, message: str, code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class MesApiClient:
    """MESバックエンドAPIクライアント (httpx.AsyncClient)

    リクエストごとにクライアントを生成して閉じる。
    テストでは transport に httpx.MockTransport を渡す。
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._token = token
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> "MesApiClient":
        return cls(
            base_url=settings.MES_API_BASE_URL,
            token=settings.MES_API_TOKEN,
            timeout=settings.MES_API_TIMEOUT,
            transport=transport,
        )

    def _get_client(self) -> httpx.AsyncClient:
        """HTTPクライアントを取得"""
        headers = {}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            headers=headers,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        """リクエストを送信し、封筒の data を返す

        Raises:
            MesApiError: 通信失敗、HTTPエラー、封筒の code が 200 以外の場合
        """
        try:
            async with self._get_client() as client:
                response = await client.request(
                    method, url, params=params, data=data, json=json_body
                )
                response.raise_for_status()
                body = response.json()

        except httpx.TimeoutException as e:
            logger.warning(f"MES API timeout ({self.timeout}s): {method} {url}: {e}")
            raise MesApiError(TIMEOUT_ERROR_MESSAGE) from e

        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.error(f"MES API returned error: {status} - {method} {url}")
            raise MesApiError(f"システムAPI {status} エラー", status) from e

        except httpx.RequestError as e:
            logger.error(f"MES API connection error: {method} {url}: {e}")
            raise MesApiError(NETWORK_ERROR_MESSAGE) from e

        except ValueError as e:
            logger.error(f"MES API returned non-JSON body: {method} {url}: {e}")
            raise MesApiError(INVALID_RESPONSE_MESSAGE) from e

        return self._unwrap(body, url)

    @staticmethod
    def _unwrap(body: Any, url: str) -> Any:
        if not isinstance(body, dict):
            logger.error(f"MES API returned unexpected body for {url}: {body!r}")
            raise MesApiError(INVALID_RESPONSE_MESSAGE)

        code = body.get("code") or 200
        if code != 200:
            message = body.get("msg") or ERROR_MESSAGES.get(code, DEFAULT_ERROR_MESSAGE)
            if code == 401:
                logger.error(f"MES API authentication expired: {message}")
            elif code == 500:
                logger.error(f"MES API server error: {message}")
            else:
                logger.error(f"MES API request failed ({code}): {message}")
            raise MesApiError(message, code)

        return body.get("data")

    @staticmethod
    def _parse_list(model: type[ModelT], data: Any, url: str) -> list[ModelT]:
        """data を一覧として検証する (null は空リスト)"""
        if data is None:
            return []
        if not isinstance(data, list):
            logger.error(f"MES API returned non-list data for {url}: {data!r}")
            raise MesApiError(INVALID_RESPONSE_MESSAGE)
        try:
            return [model.model_validate(item) for item in data]
        except ValidationError as e:
            logger.error(f"MES API returned invalid {model.__name__} for {url}: {e}")
            raise MesApiError(INVALID_RESPONSE_MESSAGE) from e

    # ========== 金型 ==========
    async def search_mold_by_code(self, keyword: str) -> list[str]:
        """金型番号のキーワード検索 (候補の金型番号一覧)"""
        url = f"/mould/info/getMouldCodeBySelect/{keyword}"
        data = await self._request("GET", url)
        if data is None:
            return []
        if not isinstance(data, list) or not all(
            isinstance(item, dict) for item in data
        ):
            logger.error(f"MES API returned invalid mold options for {url}: {data!r}")
            raise MesApiError(INVALID_RESPONSE_MESSAGE)
        return [str(item["code"]) for item in data if item.get("code")]

    async def list_mold_code_info(
        self,
        mould_code: str,
        device_id: str,
        exclude_codes: list[str] | None = None,
    ) -> list[MoldSearchInfo]:
        """金型詳細の一覧を取得する

        Args:
            mould_code: 金型番号
            device_id: 設備ID
            exclude_codes: 除外する金型番号 (設備にロック済みの金型)
        """
        url = "/modbus/pressmouldJob/listMouldCodeInfo"
        params: dict[str, Any] = {"mouldCode": mould_code, "deviceId": device_id}
        if exclude_codes:
            # mouldCodeArray=A&mouldCodeArray=B の繰り返し形式
            params["mouldCodeArray"] = list(exclude_codes)
        data = await self._request("GET", url, params=params)
        return self._parse_list(MoldSearchInfo, data, url)

    async def lock_press_mold_code(
        self, mold: MoldSearchInfo, user_name: str, device_id: str
    ) -> None:
        """金型をロックする (フォーム送信)"""
        form = {
            "choosedRowsStr": json.dumps([mold.to_payload()], ensure_ascii=False),
            "userName": user_name,
            "deviceId": device_id,
        }
        await self._request(
            "POST", "/modbus/pressmouldJob/lockPressMouldCode", data=form
        )

    async def unlock_press_mould_code(
        self, mould_codes: str, user_name: str, device_id: str
    ) -> None:
        """金型のロックを解除する (フォーム送信、金型番号はカンマ区切り)"""
        form = {"mouldCodes": mould_codes, "userName": user_name, "deviceId": device_id}
        await self._request(
            "POST", "/modbus/pressmouldJob/unlockPressMouldCode", data=form
        )

    async def select_locked_mould_info(self, device_id: str) -> list[LockedMold]:
        """設備にロック済みの金型一覧を取得する"""
        url = "/modbus/pressmouldJob/selectLockedMouldInfo"
        data = await self._request("POST", url, json_body={"deviceId": device_id})
        return self._parse_list(LockedMold, data, url)

    # ========== 設備・作業 ==========
    async def get_press_job_by_handle_ip(self) -> list[PressJob]:
        """端末IPに対応するプレス作業を取得する (IPはサーバー側で判定)"""
        url = "/modbus/device/getPressJobByHandleIp"
        return self._parse_list(PressJob, await self._request("GET", url), url)

    async def list_modbus_device(self) -> list[ModbusDevice]:
        url = "/modbus/device/list"
        return self._parse_list(ModbusDevice, await self._request("GET", url), url)

    # ========== 参照データ ==========
    async def get_team_list(self) -> list[Team]:
        url = "/erp/teams"
        return self._parse_list(Team, await self._request("GET", url), url)

    async def get_personnel_list(self, team_id: str | None = None) -> list[Personnel]:
        url = "/erp/personnel"
        params = {"teamId": team_id} if team_id else None
        data = await self._request("GET", url, params=params)
        return self._parse_list(Personnel, data, url)

    async def get_process_list(self) -> list[Process]:
        url = "/erp/processes"
        return self._parse_list(Process, await self._request("GET", url), url)
