"""schemas.moldのテスト"""

import pytest
from pydantic import ValidationError

from schemas.mold import LockedMold, MoldSearchInfo, parse_project_code


class TestParseProjectCode:
    """プロジェクト番号の取り出しのテスト"""

    @pytest.mark.parametrize(
        "mould_code, expected",
        [
            ("PRJ001-003", "PRJ001"),
            ("PRJ001-A-01", "PRJ001"),
            ("PRJ001", "PRJ001"),
            ("-001", ""),
            ("", ""),
            (None, ""),
        ],
    )
    def test_parse_project_code(self, mould_code, expected):
        """最初の "-" より前の部分を返すか"""
        assert parse_project_code(mould_code) == expected


class TestMoldSearchInfo:
    """MoldSearchInfoスキーマのテスト"""

    def test_validate_from_backend_keys(self):
        """MESバックエンドのキー名 (camelCase) から読み込めるか"""
        mold = MoldSearchInfo.model_validate(
            {
                "mouldCode": "PRJ001-001",
                "makeOrderNumber": "MO-1",
                "craftCode": "C1",
                "craftName": "曲げ",
                "stages": 3,
            }
        )

        assert mold.mould_code == "PRJ001-001"
        assert mold.make_order_number == "MO-1"
        assert mold.craft_code == "C1"
        assert mold.stages == "3"  # 数値は文字列に変換

    def test_mould_code_is_required(self):
        """金型番号が無い場合にValidationErrorが発生するか"""
        with pytest.raises(ValidationError):
            MoldSearchInfo.model_validate({"makeOrderNumber": "MO-1"})

    def test_to_payload_uses_backend_keys_and_skips_none(self):
        """to_payloadがcamelCaseかつNoneを除いた辞書を返すか"""
        mold = MoldSearchInfo(mould_code="PRJ001-001", craft_code="C1")

        assert mold.to_payload() == {"mouldCode": "PRJ001-001", "craftCode": "C1"}


class TestLockedMold:
    """LockedMoldスキーマのテスト"""

    def test_from_selection_copies_lock_fields(self):
        """ロック候補からロック済み金型を作れるか"""
        mold = MoldSearchInfo(
            mould_code="PRJ001-001",
            name="金型A",
            make_order_number="MO-1",
            stages="2",
            craft_code="C1",
            craft_name="曲げ",
        )

        locked = LockedMold.from_selection(mold)

        assert locked.mould_code == "PRJ001-001"
        assert locked.make_order_number == "MO-1"
        assert locked.stages == "2"
        assert locked.craft_code == "C1"
        assert locked.craft_name == "曲げ"
        assert locked.operator is None
