"""End-to-end tests for the command-line runner"""

import json

import pandas as pd
import pytest

from conftest import make_market_data
from run_demo import build_config, main, parse_args
from trendbench.config import ZScoreMode
from trendbench.errors import ConfigurationError


@pytest.fixture
def price_csv(tmp_path):
    data = make_market_data(400)
    rows = []
    for date, price in data.asset_prices.items():
        rows.append((date.strftime("%Y-%m-%d"), "^GSPC", price))
    for date, rate in data.risk_free_annual_pct.items():
        rows.append((date.strftime("%Y-%m-%d"), "^IRX", rate))
    path = tmp_path / "prices.csv"
    pd.DataFrame(rows, columns=["date", "symbol", "adjusted_price"]).to_csv(path, index=False)
    return path


class TestBuildConfig:

    def test_flags_override_file(self, tmp_path):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"fast_window": 20, "slow_window": 100, "trend_lag": 1}))

        config = build_config(parse_args(["--config", str(path), "--slow", "150", "--zscore-mode", "trailing"]))

        assert config.fast_window == 20
        assert config.slow_window == 150
        assert config.trend_lag == 1
        assert config.zscore_mode == ZScoreMode.TRAILING

    def test_invalid_override(self):
        with pytest.raises(ConfigurationError):
            build_config(parse_args(["--weight", "1.5"]))


class TestMain:

    def test_csv_run(self, price_csv, tmp_path):
        output_dir = tmp_path / "outputs"

        assert main(["--csv", str(price_csv), "--output-dir", str(output_dir)]) == 0

        summary = json.loads((output_dir / "summary.json").read_text())
        assert summary["variants"]["sma_plus_zscore"]["status"] == "SUCCESS"
        assert (output_dir / "growth.csv").exists()

    def test_invalid_config_exit_code(self, price_csv, tmp_path):
        assert main(["--csv", str(price_csv), "--fast", "300", "--output-dir", str(tmp_path)]) == 1

    def test_missing_csv_exit_code(self, tmp_path):
        assert main(["--csv", str(tmp_path / "missing.csv"), "--output-dir", str(tmp_path)]) == 1
