"""金型ロックコーディネータ

金型の検索 → 選択 → 検証 → ロック/解除 の流れと、
設備ごとのロック済み金型一覧を管理する。

不変条件:
- ロック済み金型は設備あたり max_lock_count 個まで
- ロック済み金型の金型番号はすべて同じプロジェクト番号を持つ
- 選択中の金型はロック済み一覧に含まれない

ロック/解除の成功時は一覧を楽観的に更新し、fetch_locked_molds で
サーバーの内容に置き換える (サーバー側の内容を常に優先する)。
"""

from typing import Iterable

from backend.job import JobSelectionGuard
from backend.logging import mold_logger as logger
from backend.mes_client import MesApiClient, MesApiError
from schemas.mold import (
    MAX_MOLD_LOCK_COUNT,
    LockedMold,
    MoldLockPhase,
    MoldSearchInfo,
    parse_project_code,
)
from schemas.result import OperationResult, ValidationResult

SEARCH_MIN_LENGTH = 2


class MoldLockCoordinator:
    """金型ロックの状態管理

    Attributes:
        options (list[str]): 金型番号の検索候補
        search_results (list[MoldSearchInfo]): 金型詳細の検索結果
        selected_mold (MoldSearchInfo | None): ロック候補 (単一選択)
        locked_molds (list[LockedMold]): 設備にロック済みの金型
        phase (MoldLockPhase): ロック候補の処理段階
        last_failure (MoldLockPhase | None): 直前のロック試行の失敗段階
    """

    def __init__(
        self,
        client: MesApiClient,
        guard: JobSelectionGuard,
        max_lock_count: int = MAX_MOLD_LOCK_COUNT,
        search_min_length: int = SEARCH_MIN_LENGTH,
    ) -> None:
        self._client = client
        self._guard = guard
        self.max_lock_count = max_lock_count
        self.search_min_length = search_min_length

        self.options: list[str] = []
        self.search_results: list[MoldSearchInfo] = []
        self.selected_mold: MoldSearchInfo | None = None
        self.locked_molds: list[LockedMold] = []
        self.panel_visible = False
        self.unlock_panel_visible = False
        self.selected_unlock_mold: LockedMold | None = None
        self.loading = False
        self.search_loading = False
        self.search_keyword = ""
        self.phase = MoldLockPhase.NONE
        self.last_failure: MoldLockPhase | None = None

    @property
    def locked_count(self) -> int:
        return len(self.locked_molds)

    @property
    def can_lock_more(self) -> bool:
        return self.locked_count < self.max_lock_count

    @property
    def locked_mold_codes(self) -> list[str]:
        return [m.mould_code for m in self.locked_molds]

    # ========== 検索・選択 ==========
    async def search_mold_options(self, keyword: str) -> list[str]:
        """金型番号の候補を検索する

        キーワードが最小文字数未満の場合は候補を空にし、要求を送らない。
        """
        self.search_keyword = keyword
        if not keyword or len(keyword) < self.search_min_length:
            self.options = []
            return self.options

        self.search_loading = True
        try:
            self.options = await self._client.search_mold_by_code(keyword)
            logger.debug(f"Mold search '{keyword}': {len(self.options)} options")
        except MesApiError as e:
            logger.error(f"Mold search failed: {e.message}")
            self.options = []
        finally:
            self.search_loading = False
        return self.options

    async def fetch_mold_info(
        self, mould_code: str, device_id: str | None = None
    ) -> list[MoldSearchInfo]:
        """金型詳細を検索する

        選択中の金型は検索前に解除する。ロック済みの金型番号は除外一覧として送る。

        Args:
            mould_code: 金型番号
            device_id: 設備ID (省略時は作業選択の設備ID)
        """
        device_id = device_id or self._guard.device_id
        self.selected_mold = None
        if not mould_code:
            self.search_results = []
            self.phase = MoldLockPhase.NONE
            return self.search_results
        if not device_id:
            logger.warning("Device id not set, cannot fetch mold info")
            self.search_results = []
            return self.search_results

        self.phase = MoldLockPhase.SEARCHING
        self.loading = True
        try:
            self.search_results = await self._client.list_mold_code_info(
                mould_code, device_id, self.locked_mold_codes or None
            )
            logger.debug(
                f"Mold info '{mould_code}': {len(self.search_results)} results"
            )
        except MesApiError as e:
            logger.error(f"Mold info fetch failed: {e.message}")
            self.search_results = []
        finally:
            self.loading = False
        return self.search_results

    def select_mold(self, mold: MoldSearchInfo | None) -> bool:
        """ロック候補を選択する (Noneで選択解除)

        Returns:
            bool: 選択できた場合True。ロック済みの金型は選択できない
        """
        if mold is None:
            self.selected_mold = None
            self.phase = MoldLockPhase.NONE
            return True
        if mold.mould_code in self.locked_mold_codes:
            logger.warning(f"Mold {mold.mould_code} is already locked")
            return False
        self.selected_mold = mold.model_copy()
        self.phase = MoldLockPhase.SELECTED
        logger.debug(f"Mold selected: {mold.mould_code}")
        return True

    def update_selected_craft(self, craft_code: str, craft_name: str) -> None:
        if self.selected_mold is None:
            return
        self.selected_mold = self.selected_mold.model_copy(
            update={"craft_code": craft_code, "craft_name": craft_name}
        )

    def validate_selection(self) -> ValidationResult:
        """ロック候補がロック可能か検証する

        検証順: 未選択 → 上限 → 製造指令番号・工法 → プロジェクト一致
        """
        mold = self.selected_mold
        if mold is None:
            return ValidationResult.fail("金型を先に選択してください")

        if not self.can_lock_more:
            return ValidationResult.fail(
                f"現在 {self.max_lock_count} 個の金型をロック済みで、上限に達しています"
            )

        if not mold.make_order_number or not mold.craft_code:
            return ValidationResult.fail("製造指令番号と工法は必須です")

        if self.locked_molds:
            new_project = parse_project_code(mold.mould_code)
            current_project = parse_project_code(self.locked_molds[0].mould_code)
            if new_project and current_project and new_project != current_project:
                return ValidationResult.fail(
                    "プロジェクトを跨いだ作業はできません。"
                    f"現在の作業プロジェクト [{current_project}]"
                )

        return ValidationResult.ok()

    # ========== ロック・解除 ==========
    async def confirm_lock(
        self, user_name: str | None = None, device_id: str | None = None
    ) -> OperationResult:
        """ロック候補をロックする

        検証に失敗した場合は要求を送らない。

        Args:
            user_name: 操作者名 (省略時は作業選択の作業者ID)
            device_id: 設備ID (省略時は作業選択の設備ID)
        """
        user_name = user_name or self._guard.current_user_name
        device_id = device_id or self._guard.device_id

        self.last_failure = None
        self.phase = MoldLockPhase.VALIDATING
        validation = self.validate_selection()
        if not validation.valid:
            message = validation.message or "金型ロックの検証に失敗しました"
            logger.warning(f"Mold lock rejected: {message}")
            self._end_failed_attempt(MoldLockPhase.VALIDATION_FAILED)
            return OperationResult(success=False, message=message)

        mold = self.selected_mold
        if mold is None:
            return OperationResult(success=False, message="金型を先に選択してください")
        self.phase = MoldLockPhase.LOCKING
        self.loading = True
        try:
            await self._client.lock_press_mold_code(mold, user_name, device_id)
        except MesApiError as e:
            logger.error(f"Mold lock failed ({mold.mould_code}): {e.message}")
            self._end_failed_attempt(MoldLockPhase.LOCK_FAILED)
            return OperationResult(
                success=False, message=f"金型のロックに失敗しました: {e.message}"
            )
        finally:
            self.loading = False

        logger.info(f"Mold locked: {mold.mould_code} (device={device_id})")
        self.apply_optimistic_lock(LockedMold.from_selection(mold))
        self.clear_selection()
        self.phase = MoldLockPhase.LOCKED
        return OperationResult(success=True, message="ロックが完了しました")

    def _end_failed_attempt(self, failure: MoldLockPhase) -> None:
        """失敗した試行を終え、候補の有無に応じて SELECTED か NONE に戻す"""
        self.last_failure = failure
        self.phase = (
            MoldLockPhase.SELECTED if self.selected_mold else MoldLockPhase.NONE
        )

    async def cancel_lock(
        self,
        mould_codes: str,
        user_name: str | None = None,
        device_id: str | None = None,
    ) -> OperationResult:
        """金型のロックを解除する

        Args:
            mould_codes: 金型番号 (複数はカンマ区切り)
            user_name: 操作者名 (省略時は作業選択の作業者ID)
            device_id: 設備ID (省略時は作業選択の設備ID)
        """
        if not mould_codes:
            logger.warning("Unlock requested without mould codes")
            return OperationResult(
                success=False, message="解除する金型を指定してください"
            )
        user_name = user_name or self._guard.current_user_name
        device_id = device_id or self._guard.device_id

        self.loading = True
        try:
            await self._client.unlock_press_mould_code(
                mould_codes, user_name, device_id
            )
        except MesApiError as e:
            logger.error(f"Mold unlock failed ({mould_codes}): {e.message}")
            return OperationResult(
                success=False, message=f"金型のロック解除に失敗しました: {e.message}"
            )
        finally:
            self.loading = False

        logger.info(f"Mold unlocked: {mould_codes} (device={device_id})")
        self.apply_optimistic_unlock(
            code.strip() for code in mould_codes.split(",") if code.strip()
        )
        self.selected_unlock_mold = None
        return OperationResult(success=True, message="ロックを解除しました")

    async def fetch_locked_molds(self, device_id: str | None = None) -> None:
        """ロック済み金型をサーバーから取得して置き換える

        取得に失敗した場合は一覧を空にする。
        """
        device_id = device_id or self._guard.device_id
        if not device_id:
            self.locked_molds = []
            return

        self.loading = True
        try:
            molds = await self._client.select_locked_mould_info(device_id)
        except MesApiError as e:
            logger.error(f"Locked mold fetch failed: {e.message}")
            self.locked_molds = []
            return
        finally:
            self.loading = False
        self.reconcile_from_server(molds)

    def apply_optimistic_lock(self, mold: LockedMold) -> None:
        """ロック成功時に一覧へ追加する (同じ金型番号は重複させない)"""
        if mold.mould_code in self.locked_mold_codes:
            return
        self.locked_molds = [*self.locked_molds, mold]

    def apply_optimistic_unlock(self, mould_codes: Iterable[str]) -> None:
        """解除成功時に一覧から取り除く (順序は維持)"""
        removed = set(mould_codes)
        self.locked_molds = [m for m in self.locked_molds if m.mould_code not in removed]

    def reconcile_from_server(self, molds: list[LockedMold]) -> None:
        """サーバーの一覧で置き換える"""
        unique: dict[str, LockedMold] = {}
        for mold in molds:
            unique.setdefault(mold.mould_code, mold)
        self.locked_molds = list(unique.values())

        if self.selected_mold and self.selected_mold.mould_code in unique:
            self.selected_mold = None
            self.phase = MoldLockPhase.NONE
        if self.locked_count > self.max_lock_count:
            logger.warning(
                f"Server reports {self.locked_count} locked molds "
                f"(limit {self.max_lock_count})"
            )
        logger.debug(f"Locked molds loaded ({self.locked_count})")

    # ========== パネル ==========
    def clear_selection(self) -> None:
        self.selected_mold = None
        self.search_results = []
        self.search_keyword = ""
        self.options = []
        self.phase = MoldLockPhase.NONE

    async def open_panel(self) -> bool:
        """ロックパネルを開き、ロック済み金型を読み込む

        Returns:
            bool: 作業選択が揃っておらず開けない場合False
        """
        if not self._guard.can_open_mold_panel():
            logger.warning("Cannot open mold lock panel: job selection incomplete")
            return False
        self.panel_visible = True
        await self.fetch_locked_molds(self._guard.device_id)
        return True

    def close_panel(self) -> None:
        """ロックパネルを閉じる (ロック済み一覧は保持する)"""
        self.panel_visible = False
        self.clear_selection()

    def open_unlock_panel(self) -> None:
        self.unlock_panel_visible = True
        self.selected_unlock_mold = None

    def close_unlock_panel(self) -> None:
        self.unlock_panel_visible = False
        self.selected_unlock_mold = None

    def select_unlock_mold(self, mold: LockedMold | None) -> None:
        self.selected_unlock_mold = mold.model_copy() if mold else None

    def reset(self) -> None:
        """全ての状態を初期化する"""
        self.clear_selection()
        self.locked_molds = []
        self.panel_visible = False
        self.unlock_panel_visible = False
        self.selected_unlock_mold = None
        self.loading = False
        self.search_loading = False
        self.last_failure = None
