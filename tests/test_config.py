"""Unit tests for configuration loading and validation."""

from dataclasses import replace
from pathlib import Path

import pytest

from inwx_dns.cli import DEFAULT_NAMESERVERS, Config, ConfigError, load_config


def valid_config(**overrides) -> Config:
    base = Config(
        api_user="user",
        api_password="secret",
        domain="example.com",
        record_fqdn="nas.example.com",
        probe_fqdn="ovpn.example.com",
    )
    return replace(base, **overrides)


def base_env(tmp_path: Path, **extra: str) -> dict:
    env = {"CONFIG_PATH": str(tmp_path / "missing.yaml")}
    env.update(extra)
    return env


class TestLoadConfig:
    def test_defaults_when_nothing_set(self, tmp_path: Path) -> None:
        config = load_config(base_env(tmp_path))

        assert config == Config()
        assert config.ttl == 300
        assert config.interface_name == "eth0"
        assert config.api_environment == "production"
        assert config.ipv6_prefix == "2001::/16"
        assert config.nameservers == DEFAULT_NAMESERVERS
        assert config.strict_exit is False

    def test_reads_environment(self, tmp_path: Path) -> None:
        env = base_env(
            tmp_path,
            INWX_USER="user",
            INWX_PASSWORD=" pass word ",
            INWX_API_ENV="Testing",
            INWX_DOMAIN="example.com",
            RECORD_FQDN="nas.example.com",
            PROBE_FQDN="ovpn.example.com",
            RECORD_TTL="3600",
            INTERFACE_NAME="enp3s0",
            IPV6_PREFIX="2a02::/16",
            DNS_NAMESERVERS="1.1.1.1,1.0.0.1",
            STATE_PATH="/var/lib/inwx-dns/state.json",
            LOG_LEVEL="debug",
            STRICT_EXIT="true",
            API_TIMEOUT_SECONDS="12.5",
        )

        config = load_config(env)

        assert config.api_user == "user"
        assert config.api_password == " pass word "
        assert config.api_environment == "testing"
        assert config.domain == "example.com"
        assert config.record_fqdn == "nas.example.com"
        assert config.probe_fqdn == "ovpn.example.com"
        assert config.ttl == 3600
        assert config.interface_name == "enp3s0"
        assert config.ipv6_prefix == "2a02::/16"
        assert config.nameservers == ("1.1.1.1", "1.0.0.1")
        assert config.state_path == "/var/lib/inwx-dns/state.json"
        assert config.log_level == "DEBUG"
        assert config.strict_exit is True
        assert config.api_timeout == 12.5

    def test_reads_yaml_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "inwx-dns.yaml"
        config_file.write_text(
            "api_user: fileuser\n"
            "api_password: filepass\n"
            "domain: example.com\n"
            "record_fqdn: nas.example.com\n"
            "ttl: 600\n"
            "nameservers:\n"
            "  - 9.9.9.9\n"
            "  - 2620:fe::fe\n"
            "strict_exit: yes\n",
            encoding="utf-8",
        )

        config = load_config({"CONFIG_PATH": str(config_file)})

        assert config.api_user == "fileuser"
        assert config.api_password == "filepass"
        assert config.ttl == 600
        assert config.nameservers == ("9.9.9.9", "2620:fe::fe")
        assert config.strict_exit is True

    def test_environment_overrides_yaml(self, tmp_path: Path) -> None:
        config_file = tmp_path / "inwx-dns.yaml"
        config_file.write_text("api_user: fileuser\nttl: 600\n", encoding="utf-8")

        config = load_config({"CONFIG_PATH": str(config_file), "INWX_USER": "envuser"})

        assert config.api_user == "envuser"
        assert config.ttl == 600

    def test_empty_environment_value_does_not_override(self, tmp_path: Path) -> None:
        config_file = tmp_path / "inwx-dns.yaml"
        config_file.write_text("interface_name: wan0\n", encoding="utf-8")

        config = load_config({"CONFIG_PATH": str(config_file), "INTERFACE_NAME": "  "})

        assert config.interface_name == "wan0"

    def test_unknown_yaml_keys_are_ignored(self, tmp_path: Path) -> None:
        config_file = tmp_path / "inwx-dns.yaml"
        config_file.write_text("domain: example.com\nfoo: bar\n", encoding="utf-8")

        config = load_config({"CONFIG_PATH": str(config_file)})

        assert config.domain == "example.com"

    def test_empty_yaml_file(self, tmp_path: Path) -> None:
        config_file = tmp_path / "inwx-dns.yaml"
        config_file.write_text("", encoding="utf-8")

        assert load_config({"CONFIG_PATH": str(config_file)}) == Config()

    def test_malformed_yaml_raises(self, tmp_path: Path) -> None:
        config_file = tmp_path / "inwx-dns.yaml"
        config_file.write_text("domain: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigError):
            load_config({"CONFIG_PATH": str(config_file)})

    def test_yaml_must_be_mapping(self, tmp_path: Path) -> None:
        config_file = tmp_path / "inwx-dns.yaml"
        config_file.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigError, match="mapping"):
            load_config({"CONFIG_PATH": str(config_file)})

    def test_non_numeric_ttl_raises(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="RECORD_TTL"):
            load_config(base_env(tmp_path, RECORD_TTL="five minutes"))

    def test_password_hidden_from_repr(self) -> None:
        assert "secret" not in repr(valid_config())


class TestValidate:
    def test_valid_config_has_no_errors(self) -> None:
        assert valid_config().validate() == []

    def test_missing_required_values(self) -> None:
        errors = Config().validate()

        assert any("INWX_USER" in e for e in errors)
        assert any("INWX_DOMAIN" in e for e in errors)
        assert any("RECORD_FQDN" in e for e in errors)

    def test_unknown_api_environment(self) -> None:
        errors = valid_config(api_environment="staging").validate()

        assert any("INWX_API_ENV" in e for e in errors)

    def test_record_outside_domain(self) -> None:
        errors = valid_config(record_fqdn="nas.example.org").validate()

        assert any("not part of" in e for e in errors)

    def test_non_positive_ttl(self) -> None:
        assert any("RECORD_TTL" in e for e in valid_config(ttl=0).validate())

    def test_invalid_ipv6_prefix(self) -> None:
        assert any("IPV6_PREFIX" in e for e in valid_config(ipv6_prefix="10.0.0.0/8").validate())

    def test_invalid_nameserver(self) -> None:
        errors = valid_config(nameservers=("dns.quad9.net",)).validate()

        assert any("DNS_NAMESERVERS" in e for e in errors)

    def test_empty_nameservers_with_ipv4_lookup(self) -> None:
        errors = valid_config(nameservers=()).validate()

        assert any("DNS_NAMESERVERS" in e for e in errors)

    def test_empty_nameservers_without_ipv4_lookup_is_fine(self) -> None:
        assert valid_config(nameservers=(), probe_fqdn="").validate() == []
