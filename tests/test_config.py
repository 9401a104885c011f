from pathlib import Path

import pytest
from pydantic import ValidationError

from tron_gasfree.config import GasFreeWalletConfig, Settings


class TestSettings:
    """Tests for environment-based configuration."""

    def test_nile_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TRON_GASFREE_CHAIN_ID", raising=False)

        settings = Settings(_env_file=None)

        assert settings.chain_id == 3448148188
        assert settings.provider == "https://nile.trongrid.io"
        assert settings.transfer_max_fee is None

    def test_env_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TRON_GASFREE_CHAIN_ID", "728126428")
        monkeypatch.setenv("TRON_GASFREE_TRANSFER_MAX_FEE", "2000000")
        monkeypatch.setenv("TRON_GASFREE_PAYMASTER_TOKEN_ADDRESS", "TXYZopYRdj2D9XRtbG411XZZ3kM5VkAeBf")

        config = GasFreeWalletConfig.from_env()

        assert config.chain_id == 728126428
        assert config.transfer_max_fee == 2_000_000
        assert config.paymaster_token is not None
        assert config.paymaster_token.address == "TXYZopYRdj2D9XRtbG411XZZ3kM5VkAeBf"

    def test_env_file(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("TRON_GASFREE_GAS_FREE_API_KEY", raising=False)
        env_file = tmp_path / ".env"
        env_file.write_text("TRON_GASFREE_GAS_FREE_API_KEY=from-file\n")

        config = GasFreeWalletConfig.from_env(env_file)

        assert config.gas_free_api_key == "from-file"


class TestWalletConfig:
    def test_rejects_invalid_service_provider(self) -> None:
        with pytest.raises(ValidationError):
            GasFreeWalletConfig(
                chain_id=1,
                gas_free_provider="https://gasfree.test",
                gas_free_api_key="k",
                gas_free_api_secret="s",
                service_provider="not-an-address",
                verifying_contract="THQGuFzL87ZqhxkgqYEryRAd7gqFqL5rdc",
            )

    def test_strips_trailing_slash(self) -> None:
        config = GasFreeWalletConfig.from_settings(Settings(_env_file=None), gas_free_provider="https://gasfree.test/")

        assert config.gas_free_provider == "https://gasfree.test"
