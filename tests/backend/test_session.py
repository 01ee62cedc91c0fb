"""backend.sessionのテスト"""

import asyncio
from unittest.mock import AsyncMock

from backend.mes_client import MesApiClient, MesApiError
from backend.session import ConsoleSession
from schemas.job import DeviceOperationStatus, PressJob


def make_client() -> AsyncMock:
    client = AsyncMock(spec=MesApiClient)
    client.get_press_job_by_handle_ip.return_value = [
        PressJob(device_id="D1", mould_code="PRJ001-001")
    ]
    client.list_modbus_device.return_value = []
    return client


class TestConsoleSession:
    """コンソールセッションのテスト"""

    def test_create_loads_job_data(self, settings, bridge_factory):
        """生成時にプレス作業情報を読み込み、設備IDを反映するか"""
        session = asyncio.run(
            ConsoleSession.create(
                settings, client=make_client(), bridge_factory=bridge_factory
            )
        )

        assert session.guard.device_id == "D1"
        assert session.job_context.locked_mold_codes == ["PRJ001-001"]
        assert session.connection.state == DeviceOperationStatus.IDLE

    def test_create_without_job_data(self, settings, bridge_factory):
        client = make_client()

        session = asyncio.run(
            ConsoleSession.create(
                settings,
                client=client,
                bridge_factory=bridge_factory,
                load_job_data=False,
            )
        )

        client.get_press_job_by_handle_ip.assert_not_called()
        assert session.guard.device_id == ""

    def test_mold_limits_from_settings(self, settings, bridge_factory):
        settings = settings.model_copy(
            update={"MAX_MOLD_LOCK_COUNT": 3, "MOLD_SEARCH_MIN_LENGTH": 4}
        )

        session = ConsoleSession(settings, make_client(), bridge_factory=bridge_factory)

        assert session.mold.max_lock_count == 3
        assert session.mold.search_min_length == 4

    def test_job_data_failure_keeps_session_usable(self, settings, bridge_factory):
        """作業情報の取得に失敗してもセッションは生成されるか"""
        client = make_client()
        client.get_press_job_by_handle_ip.side_effect = MesApiError("timeout")

        session = asyncio.run(
            ConsoleSession.create(settings, client=client, bridge_factory=bridge_factory)
        )

        assert session.guard.device_id == ""
        assert session.guard.can_open_mold_panel() is False

    def test_connect_and_dispose(self, settings, bridge_factory, fake_bridge):
        session = asyncio.run(
            ConsoleSession.create(
                settings, client=make_client(), bridge_factory=bridge_factory
            )
        )

        result = asyncio.run(session.connection.establish_connection())
        session.dispose()

        assert result.success is True
        assert fake_bridge.values_changed.subscriber_count == 0
        assert fake_bridge.config_changed.subscriber_count == 0
