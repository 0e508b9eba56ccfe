#!/usr/bin/env python3
"""inwx-dns - Dynamic DNS for INWX

Keeps an A/AAAA record at INWX in sync with the public addresses of this host,
similar in spirit to a DynDNS client. Meant to be started by cron or a systemd
timer; every invocation is a single pass:

    1. Collect the IPv6 addresses of one network interface that lie inside the
       public prefix, plus the IPv4 address of a probe hostname resolved
       through a fixed set of upstream name servers.
    2. Compare them against the snapshot saved by the previous run.
    3. On any difference, create or update the record at INWX and save the new
       snapshot.

Environment variables:

    INWX API:
        INWX_USER              Account username (required)
        INWX_PASSWORD          Account password (required)
        INWX_API_ENV           "production" or "testing" (OTE sandbox)
                               (default: production)
        API_TIMEOUT_SECONDS    Request timeout for API calls (default: 30)

    Records:
        INWX_DOMAIN            Domain managed at INWX, e.g. "example.com" (required)
        RECORD_FQDN            Hostname to keep in sync, e.g. "nas.example.com" (required)
        RECORD_TTL             TTL for created/updated records (default: 300)

    Address collection:
        INTERFACE_NAME         Interface to read IPv6 addresses from (default: eth0)
        IPV6_PREFIX            Only addresses inside this prefix are published
                               (default: 2001::/16)
        PROBE_FQDN             Hostname whose A record is this host's public IPv4,
                               e.g. a router's DynDNS name. Empty disables the A record.
        DNS_NAMESERVERS        Comma-separated resolvers used for PROBE_FQDN
                               (default: Quad9, 9.9.9.9,149.112.112.112,2620:fe::fe,2620:fe::9)

    Runtime:
        STATE_PATH             JSON snapshot of the last published addresses
                               (default: /tmp/inwx-dns-state.json)
        LOG_LEVEL              DEBUG, INFO, WARNING, ERROR (default: INFO)
        STRICT_EXIT            Exit with status 2 when the update fails (default: false).
                               By default every run exits 0 so cron stays quiet.
        CONFIG_PATH            Optional YAML file using the lowercase option names
                               (default: /config/inwx-dns.yaml). Example:
                                 api_user: "myuser"
                                 api_password: "secret"
                                 domain: "example.com"
                                 record_fqdn: "nas.example.com"
                                 probe_fqdn: "ovpn.example.com"
                                 nameservers: ["9.9.9.9", "149.112.112.112"]
                               Environment variables take precedence over the file.

Example crontab entry:

    * * * * * /usr/local/bin/inwx-dns
"""

from __future__ import annotations

import functools
import ipaddress
import json
import logging
import os
import socket
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import dns.exception
import dns.resolver
import psutil
import requests
import yaml

# =============================================================================
# Configuration
# =============================================================================

DEFAULT_CONFIG_PATH = "/config/inwx-dns.yaml"
DEFAULT_NAMESERVERS = ("9.9.9.9", "149.112.112.112", "2620:fe::fe", "2620:fe::9")

INWX_ENDPOINTS = {
    "production": "https://api.domrobot.com/jsonrpc/",
    "testing": "https://api.ote.domrobot.com/jsonrpc/",
}

# Config field -> environment variable
ENV_VARS = {
    "api_user": "INWX_USER",
    "api_password": "INWX_PASSWORD",
    "api_environment": "INWX_API_ENV",
    "api_timeout": "API_TIMEOUT_SECONDS",
    "domain": "INWX_DOMAIN",
    "record_fqdn": "RECORD_FQDN",
    "probe_fqdn": "PROBE_FQDN",
    "ttl": "RECORD_TTL",
    "interface_name": "INTERFACE_NAME",
    "ipv6_prefix": "IPV6_PREFIX",
    "nameservers": "DNS_NAMESERVERS",
    "state_path": "STATE_PATH",
    "log_level": "LOG_LEVEL",
    "strict_exit": "STRICT_EXIT",
}


@dataclass(frozen=True)
class Config:
    """Runtime configuration, built once at startup."""

    api_user: str = ""
    api_password: str = field(default="", repr=False)
    api_environment: str = "production"
    api_timeout: float = 30.0
    domain: str = ""
    record_fqdn: str = ""
    probe_fqdn: str = ""
    ttl: int = 300
    interface_name: str = "eth0"
    ipv6_prefix: str = "2001::/16"
    nameservers: Tuple[str, ...] = DEFAULT_NAMESERVERS
    state_path: str = "/tmp/inwx-dns-state.json"
    log_level: str = "INFO"
    strict_exit: bool = False

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty when valid)."""
        errors: List[str] = []

        if not self.api_user or not self.api_password:
            errors.append("INWX_USER and INWX_PASSWORD are required")
        if self.api_environment not in INWX_ENDPOINTS:
            errors.append(
                f"Unsupported INWX_API_ENV: '{self.api_environment}'. "
                f"Supported: {', '.join(INWX_ENDPOINTS)}"
            )
        if self.api_timeout <= 0:
            errors.append("API_TIMEOUT_SECONDS must be positive")

        if not self.domain:
            errors.append("INWX_DOMAIN is required")
        if not self.record_fqdn:
            errors.append("RECORD_FQDN is required")
        elif self.domain and not _is_within_domain(self.record_fqdn, self.domain):
            errors.append(f"RECORD_FQDN '{self.record_fqdn}' is not part of '{self.domain}'")
        if self.ttl <= 0:
            errors.append("RECORD_TTL must be positive")

        if not self.interface_name:
            errors.append("INTERFACE_NAME is required")
        try:
            ipaddress.IPv6Network(self.ipv6_prefix)
        except ValueError as e:
            errors.append(f"Invalid IPV6_PREFIX '{self.ipv6_prefix}': {e}")

        if self.probe_fqdn and not self.nameservers:
            errors.append("DNS_NAMESERVERS must not be empty when PROBE_FQDN is set")
        for nameserver in self.nameservers:
            try:
                ipaddress.ip_address(nameserver)
            except ValueError:
                errors.append(f"Invalid name server address in DNS_NAMESERVERS: '{nameserver}'")

        if not self.state_path:
            errors.append("STATE_PATH is required")

        return errors


def _is_within_domain(fqdn: str, domain: str) -> bool:
    fqdn = fqdn.rstrip(".").lower()
    domain = domain.rstrip(".").lower()
    return fqdn == domain or fqdn.endswith("." + domain)


def _parse_bool(value: Any, *, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "y", "on"}


def _parse_list(value: Any) -> Tuple[str, ...]:
    items = value.split(",") if isinstance(value, str) else list(value or [])
    return tuple(str(item).strip() for item in items if str(item).strip())


def _coerce(name: str, value: Any) -> Any:
    """Convert a raw env/YAML value to the type of the Config field."""
    if name == "strict_exit":
        return _parse_bool(value)
    if name == "nameservers":
        return _parse_list(value)
    if name in ("ttl", "api_timeout"):
        try:
            return int(value) if name == "ttl" else float(value)
        except (TypeError, ValueError):
            raise ConfigError(f"{ENV_VARS[name]} must be a number, got {value!r}") from None
    if name == "api_password":
        return str(value)
    text = str(value).strip()
    if name == "api_environment":
        return text.lower()
    if name == "log_level":
        return text.upper()
    return text


def _read_config_file(path: str) -> Dict[str, Any]:
    """Read the optional YAML config file. A missing file yields no values."""
    config_file = Path(path)
    if not config_file.is_file():
        return {}

    try:
        with open(config_file, "r") as f:
            config_data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Failed to load config from {path}: {e}") from e

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping of options")

    unknown = sorted(str(k) for k in config_data if k not in ENV_VARS)
    if unknown:
        logger.warning(f"Ignoring unknown option(s) in {path}: {', '.join(unknown)}")
    return {k: v for k, v in config_data.items() if k in ENV_VARS and v is not None}


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Build the Config from defaults, the YAML file and the environment.

    Precedence (highest first): environment variables, YAML file, defaults.
    Empty environment variables count as unset.
    """
    if environ is None:
        environ = os.environ

    raw = _read_config_file(environ.get("CONFIG_PATH", DEFAULT_CONFIG_PATH))
    for name, env_var in ENV_VARS.items():
        value = environ.get(env_var, "")
        if value.strip():
            raw[name] = value

    return Config(**{name: _coerce(name, value) for name, value in raw.items()})


# =============================================================================
# Logging Setup
# =============================================================================

logger = logging.getLogger(__name__)


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# =============================================================================
# Exceptions
# =============================================================================


class InwxDNSError(Exception):
    """Base class for errors raised by inwx-dns."""


class ConfigError(InwxDNSError):
    """Configuration could not be loaded or is invalid."""


class InterfaceNotFoundError(InwxDNSError):
    """The configured network interface does not exist on this host."""


class ProviderError(InwxDNSError):
    """A DNS provider call failed (API error code, bad payload or transport)."""

    def __init__(self, message: str, code: Optional[int] = None):
        super().__init__(message)
        self.code = code


# =============================================================================
# Enums
# =============================================================================


class RecordType(Enum):
    """DNS record types published by inwx-dns."""

    A = "A"
    AAAA = "AAAA"


class SyncOutcome(Enum):
    """Result of a single run.

    UPDATED:         Addresses changed and every record was created/updated.
    UNCHANGED:       Addresses match the saved snapshot; nothing was sent.
    PARTIAL_FAILURE: Some records were written before a provider call failed.
    ERROR:           Nothing was written (login or first record failed).
    """

    UPDATED = "updated"
    UNCHANGED = "unchanged"
    PARTIAL_FAILURE = "partial-failure"
    ERROR = "error"


# =============================================================================
# Data Classes
# =============================================================================


@dataclass(frozen=True)
class AddressEntry:
    """One record value to publish."""

    address: str
    type: RecordType

    def to_dict(self) -> Dict[str, str]:
        return {"address": self.address, "type": self.type.value}

    @classmethod
    def from_dict(cls, data: Any) -> AddressEntry:
        """Parse a snapshot item, checking that the address fits the type."""
        if not isinstance(data, dict):
            raise ValueError(f"Expected an object, got {type(data).__name__}")

        address = data.get("address")
        if not isinstance(address, str):
            raise ValueError(f"Missing or non-string address in {data!r}")
        try:
            record_type = RecordType(data.get("type"))
        except ValueError:
            raise ValueError(f"Unknown record type: {data.get('type')!r}") from None

        parse = ipaddress.IPv4Address if record_type is RecordType.A else ipaddress.IPv6Address
        try:
            parse(address)
        except ValueError as e:
            raise ValueError(f"Invalid {record_type.value} address: {e}") from None

        return cls(address=address, type=record_type)


@dataclass(frozen=True)
class NoRecord:
    """The provider has no record for the queried name and type."""


@dataclass(frozen=True)
class ExistingRecord:
    """Records found at the provider; content and ttl are those of the first."""

    ids: Tuple[int, ...]
    content: str
    ttl: int


RecordLookup = Union[NoRecord, ExistingRecord]


# =============================================================================
# Address Collection
# =============================================================================


class AddressCollector:
    """Builds the list of addresses that should be published right now."""

    def __init__(
        self,
        interface_name: str,
        ipv6_prefix: str,
        probe_fqdn: str = "",
        nameservers: Sequence[str] = DEFAULT_NAMESERVERS,
        resolver: Optional[dns.resolver.Resolver] = None,
        interface_lister: Optional[Callable[[], Dict[str, List[Any]]]] = None,
    ):
        self.interface_name = interface_name
        self.ipv6_network = ipaddress.IPv6Network(ipv6_prefix)
        self.probe_fqdn = probe_fqdn

        # Fixed upstream resolvers, never /etc/resolv.conf
        if resolver is None:
            resolver = dns.resolver.Resolver(configure=False)
            resolver.nameservers = list(nameservers)
        self._resolver = resolver
        self._interface_lister = interface_lister or psutil.net_if_addrs

    def _interface_addresses(self) -> List[Any]:
        interfaces = self._interface_lister()
        if self.interface_name not in interfaces:
            raise InterfaceNotFoundError(f"Interface {self.interface_name} does not exist")
        return interfaces[self.interface_name]

    def check_interface(self) -> None:
        """Raise InterfaceNotFoundError if the configured interface is missing."""
        self._interface_addresses()

    def ipv6_entries(self) -> List[AddressEntry]:
        """AAAA entries for interface addresses inside the public prefix."""
        entries: List[AddressEntry] = []
        for addr in self._interface_addresses():
            if addr.family != socket.AF_INET6:
                continue
            # Link-local addresses carry a "%scope" suffix
            raw_address = addr.address.split("%", 1)[0]
            try:
                ip = ipaddress.IPv6Address(raw_address)
            except ValueError:
                logger.debug(f"Skipping unparsable address '{addr.address}'")
                continue
            if ip not in self.ipv6_network:
                logger.debug(f"Skipping {ip} (outside {self.ipv6_network})")
                continue
            entries.append(AddressEntry(address=str(ip), type=RecordType.AAAA))
        return entries

    def ipv4_entry(self) -> Optional[AddressEntry]:
        """A entry for the probe hostname, or None if it cannot be resolved."""
        if not self.probe_fqdn:
            return None

        try:
            answer = self._resolver.resolve(self.probe_fqdn, "A")
        except dns.exception.DNSException as e:
            logger.warning(f"IPv4 lookup of {self.probe_fqdn} failed, skipping A record: {e}")
            return None

        for rdata in answer:
            return AddressEntry(address=rdata.address, type=RecordType.A)

        logger.warning(f"IPv4 lookup of {self.probe_fqdn} returned no address")
        return None

    def collect(self) -> List[AddressEntry]:
        """IPv6 entries in interface order, followed by the IPv4 entry if any."""
        entries = self.ipv6_entries()
        ipv4 = self.ipv4_entry()
        if ipv4 is not None:
            entries.append(ipv4)
        return entries


# =============================================================================
# State Management
# =============================================================================


def serialize_entries(entries: Sequence[AddressEntry]) -> str:
    """Canonical text form of an entry list, used for storage and comparison."""
    return json.dumps([entry.to_dict() for entry in entries], indent=2)


class StateStore:
    """Snapshot of the last published addresses, kept in a JSON file.

    load() returns None when the previous state is unknown (missing, unreadable
    or corrupt file). An empty list is a valid, known snapshot.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> Optional[List[AddressEntry]]:
        if not self.path.exists():
            logger.info(f"No state file at {self.path}, previous addresses unknown")
            return None
        try:
            data = json.loads(self.path.read_text("utf-8"))
            if not isinstance(data, list):
                raise ValueError(f"expected a list, got {type(data).__name__}")
            return [AddressEntry.from_dict(item) for item in data]
        except (OSError, ValueError, RecursionError) as e:
            logger.warning(f"Failed to load state file {self.path}: {e}")
            return None

    def save(self, entries: Sequence[AddressEntry]) -> bool:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
            tmp_path.write_text(serialize_entries(entries), "utf-8")
            tmp_path.replace(self.path)
        except OSError as e:
            logger.error(f"Failed to save state file {self.path}: {e}")
            return False
        logger.debug(f"Saved {len(entries)} address(es) to {self.path}")
        return True


# =============================================================================
# Change Detection
# =============================================================================


def has_changed(
    previous: Optional[Sequence[AddressEntry]], current: Sequence[AddressEntry]
) -> bool:
    """True if current differs from previous (order-sensitive) or previous is unknown."""
    if previous is None:
        return True
    return serialize_entries(previous) != serialize_entries(current)


# =============================================================================
# DNS Provider Interface and Implementations
# =============================================================================


class DNSProvider(ABC):
    """Abstract base class for DNS providers.

    Every call raises ProviderError on failure.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name for logging."""
        pass

    @abstractmethod
    def login(self) -> None:
        """Open an authenticated session."""
        pass

    @abstractmethod
    def lookup_record(self, domain: str, record_type: RecordType, name: str) -> RecordLookup:
        """Find the records of the given type and name."""
        pass

    @abstractmethod
    def create_record(
        self, domain: str, content: str, record_type: RecordType, name: str, ttl: int
    ) -> Optional[int]:
        """Create a record and return its id."""
        pass

    @abstractmethod
    def update_record(self, record: ExistingRecord, content: str, ttl: int) -> None:
        """Replace content and ttl of existing records."""
        pass

    @abstractmethod
    def close(self) -> None:
        """End the session. Safe to call more than once."""
        pass


class InwxDNSProvider(DNSProvider):
    """INWX DomRobot JSON-RPC API.

    Authentication is session based: account.login sets a cookie that the
    requests session sends with every following call.
    """

    def __init__(
        self,
        username: str,
        password: str,
        environment: str = "production",
        timeout: float = 30.0,
    ):
        if environment not in INWX_ENDPOINTS:
            raise ConfigError(f"Unsupported INWX API environment: '{environment}'")
        self._url = INWX_ENDPOINTS[environment]
        self._environment = environment
        self._username = username
        self._password = password
        self._timeout = timeout
        self._session = requests.Session()
        self._logged_in = False
        self._closed = False

    @property
    def name(self) -> str:
        return "INWX" if self._environment == "production" else "INWX (OTE)"

    def _call(self, method: str, params: Dict[str, Any]) -> Dict[str, Any]:
        logger.debug(f"{self.name} call: {method}")
        try:
            response = self._session.post(
                self._url,
                json={"method": method, "params": params},
                timeout=self._timeout,
            )
            response.raise_for_status()
            data = response.json()
        except (requests.exceptions.RequestException, json.JSONDecodeError) as e:
            raise ProviderError(f"{method} failed: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("code"), int):
            raise ProviderError(f"{method} returned an unexpected response")

        # 1xxx codes are success, everything else is an error
        code = data["code"]
        if code >= 2000:
            reason = data.get("reason") or ""
            detail = f" ({reason})" if reason else ""
            raise ProviderError(f"{method} failed: {code} {data.get('msg', '')}{detail}", code=code)

        res_data = data.get("resData")
        return res_data if isinstance(res_data, dict) else {}

    def login(self) -> None:
        res_data = self._call("account.login", {"user": self._username, "pass": self._password})
        self._logged_in = True
        if str(res_data.get("tfa", "0")) not in ("0", ""):
            raise ProviderError(f"{self.name} account requires two-factor authentication")
        logger.debug(f"Logged in to {self.name} as {self._username}")

    def lookup_record(self, domain: str, record_type: RecordType, name: str) -> RecordLookup:
        res_data = self._call(
            "nameserver.info", {"domain": domain, "type": record_type.value, "name": name}
        )
        records = res_data.get("record") or []
        if not isinstance(records, list):
            raise ProviderError(f"nameserver.info returned malformed records for {name}")

        found = [r for r in records if isinstance(r, dict) and "id" in r]
        if not found:
            return NoRecord()
        try:
            return ExistingRecord(
                ids=tuple(int(r["id"]) for r in found),
                content=str(found[0].get("content", "")),
                ttl=int(found[0].get("ttl", 0)),
            )
        except (TypeError, ValueError) as e:
            raise ProviderError(f"nameserver.info returned malformed records for {name}: {e}") from e

    def create_record(
        self, domain: str, content: str, record_type: RecordType, name: str, ttl: int
    ) -> Optional[int]:
        res_data = self._call(
            "nameserver.createRecord",
            {
                "domain": domain,
                "type": record_type.value,
                "content": content,
                "name": name,
                "ttl": ttl,
            },
        )
        record_id = res_data.get("id")
        return int(record_id) if record_id is not None else None

    def update_record(self, record: ExistingRecord, content: str, ttl: int) -> None:
        record_id: Union[int, List[int]] = (
            record.ids[0] if len(record.ids) == 1 else list(record.ids)
        )
        self._call("nameserver.updateRecord", {"id": record_id, "content": content, "ttl": ttl})

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            if self._logged_in:
                self._call("account.logout", {})
        except ProviderError as e:
            logger.warning(f"Logout from {self.name} failed: {e}")
        finally:
            self._logged_in = False
            self._session.close()


def create_dns_provider(config: Config) -> DNSProvider:
    """Factory function to create the configured DNS provider."""
    return InwxDNSProvider(
        username=config.api_user,
        password=config.api_password,
        environment=config.api_environment,
        timeout=config.api_timeout,
    )


# =============================================================================
# Reconciliation
# =============================================================================


class Reconciler:
    """Makes the provider hold a record for each collected address.

    Entries are processed in order. The first provider error stops the run;
    the session is closed on every path.
    """

    def __init__(
        self,
        provider_factory: Callable[[], DNSProvider],
        *,
        domain: str,
        record_fqdn: str,
        ttl: int,
    ):
        self.provider_factory = provider_factory
        self.domain = domain
        self.record_fqdn = record_fqdn
        self.ttl = ttl

    def _apply(self, provider: DNSProvider, entry: AddressEntry) -> None:
        lookup = provider.lookup_record(self.domain, entry.type, self.record_fqdn)
        if isinstance(lookup, ExistingRecord):
            provider.update_record(lookup, entry.address, self.ttl)
            logger.info(f"Updated: {self.record_fqdn} {entry.type.value} {entry.address}")
        else:
            provider.create_record(
                self.domain, entry.address, entry.type, self.record_fqdn, self.ttl
            )
            logger.info(f"Created: {self.record_fqdn} {entry.type.value} {entry.address}")

    def reconcile(self, entries: Sequence[AddressEntry]) -> SyncOutcome:
        applied = 0
        provider = self.provider_factory()
        try:
            provider.login()
            for entry in entries:
                self._apply(provider, entry)
                applied += 1
        except ProviderError as e:
            if applied:
                logger.error(
                    f"Update aborted after {applied} of {len(entries)} record(s) on {provider.name}: {e}"
                )
                return SyncOutcome.PARTIAL_FAILURE
            logger.error(f"Update failed on {provider.name}: {e}")
            return SyncOutcome.ERROR
        finally:
            provider.close()

        logger.info(f"Success: {applied} record(s) in sync on {provider.name}")
        return SyncOutcome.UPDATED


# =============================================================================
# Core Updater
# =============================================================================


class DNSUpdater:
    def __init__(
        self,
        *,
        collector: AddressCollector,
        state_store: StateStore,
        reconciler: Reconciler,
    ):
        self.collector = collector
        self.state_store = state_store
        self.reconciler = reconciler

    def sync_once(self) -> SyncOutcome:
        current = self.collector.collect()
        previous = self.state_store.load()

        if not has_changed(previous, current):
            logger.info("Nothing to do, addresses unchanged")
            return SyncOutcome.UNCHANGED

        addresses = ", ".join(f"{e.type.value} {e.address}" for e in current) or "none"
        logger.info(f"IP changes detected: {addresses}")

        outcome = self.reconciler.reconcile(current)
        if outcome is not SyncOutcome.UPDATED:
            # No retry: the next run only acts on a new address change
            logger.warning(f"Update {outcome.value}, saving snapshot anyway")
        self.state_store.save(current)
        return outcome


def build_updater(config: Config) -> DNSUpdater:
    """Wire the components for the given configuration."""
    collector = AddressCollector(
        interface_name=config.interface_name,
        ipv6_prefix=config.ipv6_prefix,
        probe_fqdn=config.probe_fqdn,
        nameservers=config.nameservers,
    )
    reconciler = Reconciler(
        functools.partial(create_dns_provider, config),
        domain=config.domain,
        record_fqdn=config.record_fqdn,
        ttl=config.ttl,
    )
    return DNSUpdater(
        collector=collector,
        state_store=StateStore(config.state_path),
        reconciler=reconciler,
    )


# =============================================================================
# Main
# =============================================================================

EXIT_OK = 0
EXIT_STARTUP_ERROR = 1
EXIT_SYNC_FAILED = 2


def exit_code_for(outcome: SyncOutcome, strict: bool = False) -> int:
    """Process exit status for a run outcome."""
    if strict and outcome in (SyncOutcome.PARTIAL_FAILURE, SyncOutcome.ERROR):
        return EXIT_SYNC_FAILED
    return EXIT_OK


def validate_config(config: Config) -> bool:
    """Validate configuration."""
    errors = config.validate()

    if not config.probe_fqdn:
        logger.warning("⚠️  PROBE_FQDN not set. Only AAAA records will be published.")
    if config.api_environment == "testing":
        logger.warning("⚠️  Using the INWX OTE sandbox, production records are not touched.")

    if errors:
        for error in errors:
            logger.error(error)
        return False

    return True


def main():
    """Main entry point."""
    try:
        config = load_config()
    except ConfigError as e:
        setup_logging()
        logger.error(str(e))
        sys.exit(EXIT_STARTUP_ERROR)

    setup_logging(config.log_level)
    logger.info(f"inwx-dns: {config.interface_name} -> {config.record_fqdn}")

    # Validate configuration
    if not validate_config(config):
        logger.error("Configuration validation failed")
        sys.exit(EXIT_STARTUP_ERROR)

    updater = build_updater(config)

    # Fail before any network activity
    try:
        updater.collector.check_interface()
    except InterfaceNotFoundError as e:
        logger.error(str(e))
        sys.exit(EXIT_STARTUP_ERROR)

    try:
        outcome = updater.sync_once()
    except InterfaceNotFoundError as e:
        logger.error(str(e))
        sys.exit(EXIT_STARTUP_ERROR)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        outcome = SyncOutcome.ERROR

    exit_code = exit_code_for(outcome, config.strict_exit)
    if exit_code != EXIT_OK:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
