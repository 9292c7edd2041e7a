# type: ignore
import os
import pathlib
import pytest
import yaml
import utils.utilities as Utilities
import logging
from datetime import datetime, timezone, timedelta
from unittest.mock import MagicMock

CONFIG_FILE = "tests/data/test_config.yaml"


class TestUtilities:
    @classmethod
    def setup_class(self):
        self.args = MagicMock()
        self.basic_config = {}
        self.config = yaml.safe_load(open(CONFIG_FILE, "r"))

    def setup_method(self):
        self.args.console_log_level = "INFO"
        self.args.config_file = CONFIG_FILE
        self.args.op_type = "unit-test-analyze"
        self.basic_config = {
            "config": self.config,
            "args": self.args,
        }

    @staticmethod
    def remove_file(path):
        try:
            os.remove(path)
        except OSError:
            pass

    @staticmethod
    def assert_is_file(path):
        if not pathlib.Path(path).resolve().is_file():
            raise AssertionError("File does not exist: %s" % str(path))

    def test_write_monitoring_log_good(self) -> None:
        Utilities.write_monitoring_log(self.basic_config, True, self.args.op_type)
        log_path = pathlib.Path(
            f"{self.args.op_type}_"
            f"{self.basic_config['config']['settings']['monitoring_log_file']}"
        )
        self.assert_is_file(log_path)
        assert log_path.read_text() == "True"
        self.remove_file(log_path)

    def test_write_monitoring_log_bad(self, caplog) -> None:
        bad_log_file = "tests/data/test_bad_config_log_file.yaml"
        bad_config_log_file = yaml.safe_load(open(bad_log_file, "r"))
        basic_config_log_file = {
            "config": bad_config_log_file,
            "args": self.args,
        }
        with caplog.at_level(logging.ERROR):
            with pytest.raises(SystemExit):
                Utilities.write_monitoring_log(
                    basic_config_log_file, False, "some_runner"
                )
        assert len(caplog.text) > 0

    @pytest.mark.parametrize(
        "value, expected",
        [
            (["Finance team"], "Finance team"),
            ("Finance team", "Finance team"),
            ([], ""),
            (None, ""),
            (0, 0),
        ],
    )
    def test_first_value(self, value, expected) -> None:
        assert Utilities.first_value(value) == expected

    def test_as_list(self) -> None:
        assert Utilities.as_list(None) == []
        assert Utilities.as_list("CN=a") == ["CN=a"]
        assert Utilities.as_list(["CN=a", "CN=b"]) == ["CN=a", "CN=b"]

    def test_parse_ad_timestamp_string(self) -> None:
        returned = Utilities.parse_ad_timestamp("20200101120000.0Z")
        assert returned == datetime(2020, 1, 1, 12, 0, tzinfo=timezone.utc)

    def test_parse_ad_timestamp_bytes_list(self) -> None:
        returned = Utilities.parse_ad_timestamp([b"20231231235959.0Z"])
        assert returned == datetime(2023, 12, 31, 23, 59, 59, tzinfo=timezone.utc)

    def test_parse_ad_timestamp_datetime(self) -> None:
        aware = datetime(2021, 5, 4, tzinfo=timezone(timedelta(hours=2)))
        assert Utilities.parse_ad_timestamp(aware) is aware
        naive = datetime(2021, 5, 4)
        assert Utilities.parse_ad_timestamp(naive).tzinfo == timezone.utc

    def test_parse_ad_timestamp_missing(self) -> None:
        assert Utilities.parse_ad_timestamp(None) is None
        assert Utilities.parse_ad_timestamp([]) is None

    def test_parse_ad_timestamp_garbage(self, caplog) -> None:
        with caplog.at_level(logging.WARNING):
            assert Utilities.parse_ad_timestamp("yesterday") is None
        assert "yesterday" in caplog.text

    @pytest.mark.parametrize(
        "value, expected",
        [(512, False), (514, True), ("66050", True), ([66048], False), (None, False)],
    )
    def test_is_account_disabled(self, value, expected) -> None:
        assert Utilities.is_account_disabled(value) is expected

    @pytest.mark.parametrize(
        "value, expected",
        [
            (-2147483646, ("Security", "Global")),
            (-2147483644, ("Security", "DomainLocal")),
            (-2147483640, ("Security", "Universal")),
            (-2147483643, ("Security", "BuiltinLocal")),
            (2, ("Distribution", "Global")),
            ([8], ("Distribution", "Universal")),
            (None, ("Unknown", "Unknown")),
            ("bad", ("Unknown", "Unknown")),
        ],
    )
    def test_decode_group_type(self, value, expected) -> None:
        assert Utilities.decode_group_type(value) == expected

    def test_rdn_value(self) -> None:
        assert Utilities.rdn_value("OU=Finance,DC=example,DC=com") == "Finance"
        assert Utilities.rdn_value("Finance") == "Finance"
