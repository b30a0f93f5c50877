"""!
@brief Read-only registry access for local and remote hosts.
@details Detection never talks to ``winreg`` directly. It goes through a
:class:`RegistryReader` bound to one host at construction time. Missing keys
and values are reported as ``None`` (or an empty list for enumerations) so
callers can treat absence as an ordinary branch; only failure to reach the
host at all raises :class:`HostUnreachableError`.

Three transports are available:

- the local registry through ``winreg`` (64-bit view, so explicit
  ``WOW6432Node`` paths behave the same under a 32-bit interpreter);
- a remote registry through ``winreg.ConnectRegistry`` with the current
  credentials;
- a remote registry through WMI ``StdRegProv`` when alternate credentials are
  supplied, using pywin32's COM bindings.
"""
from __future__ import annotations

import platform
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List

from . import constants, logging_ext
from .errors import OdtGeneratorError

try:  # pragma: no cover - exercised through fakes on non-Windows platforms.
    import winreg
except ImportError:  # pragma: no cover - handled gracefully during tests.
    winreg = None  # type: ignore[assignment]


_LOCAL_HOST_ALIASES = frozenset(("", ".", "localhost", "127.0.0.1", "::1"))


class HostUnreachableError(OdtGeneratorError):
    """!
    @brief Raised when the registry of a target host cannot be opened.
    """

    def __init__(self, host: str, reason: object) -> None:
        self.host = host
        self.reason = reason
        super().__init__(f"{host}: {reason}")


class RegistryReader:
    """!
    @brief Read-only view of one host's registry.
    @details Subclasses implement the primitive reads. Every method takes a
    hive constant from :mod:`odt_generator.constants` and a backslash
    separated key path.
    """

    host: str = "localhost"

    def enum_subkeys(self, root: int, path: str) -> List[str]:
        raise NotImplementedError

    def enum_value_names(self, root: int, path: str) -> List[str]:
        raise NotImplementedError

    def read_string(self, root: int, path: str, name: str) -> str | None:
        raise NotImplementedError

    def read_multi_string(self, root: int, path: str, name: str) -> List[str] | None:
        raise NotImplementedError

    def read_dword(self, root: int, path: str, name: str) -> int | None:
        raise NotImplementedError

    def close(self) -> None:
        """!
        @brief Release any transport handles held by the reader.
        """

    def __enter__(self) -> "RegistryReader":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def _ensure_winreg() -> None:
    """!
    @brief Raise an informative error when ``winreg`` is unavailable.
    """

    if winreg is None:  # pragma: no cover - simplifies non-Windows test runs.
        raise FileNotFoundError("Windows registry APIs are unavailable on this platform")


class WinRegReader(RegistryReader):
    """!
    @brief Registry reader backed by ``winreg``.
    @details With ``host`` unset the local registry is used; otherwise each
    hive is opened once through ``ConnectRegistry`` and cached for the
    lifetime of the reader.
    """

    def __init__(self, host: str | None = None) -> None:
        _ensure_winreg()
        self._remote = bool(host) and not is_local_host(host)
        self.host = host if self._remote else platform.node() or "localhost"
        self._hives: Dict[int, Any] = {}

    def connect(self) -> None:
        """!
        @brief Open the remote ``HKLM`` hive so connectivity failures surface early.
        """

        self._hive(constants.HKLM)

    def _hive(self, root: int) -> Any:
        if not self._remote:
            return root
        handle = self._hives.get(root)
        if handle is None:
            try:
                handle = winreg.ConnectRegistry(f"\\\\{self.host}", root)  # type: ignore[union-attr]
            except OSError as exc:
                raise HostUnreachableError(self.host, exc) from exc
            self._hives[root] = handle
        return handle

    @contextmanager
    def _open(self, root: int, path: str) -> Iterator[Any]:
        access = winreg.KEY_READ | winreg.KEY_WOW64_64KEY  # type: ignore[union-attr]
        handle = winreg.OpenKey(self._hive(root), path, 0, access)  # type: ignore[union-attr]
        try:
            yield handle
        finally:
            winreg.CloseKey(handle)  # type: ignore[union-attr]

    def _query(self, root: int, path: str, name: str) -> Any | None:
        try:
            with self._open(root, path) as handle:
                value, _ = winreg.QueryValueEx(handle, name)  # type: ignore[union-attr]
                return value
        except FileNotFoundError:
            return None
        except OSError:
            return None

    def enum_subkeys(self, root: int, path: str) -> List[str]:
        try:
            with self._open(root, path) as handle:
                subkey_count, _, _ = winreg.QueryInfoKey(handle)  # type: ignore[union-attr]
                return [winreg.EnumKey(handle, index) for index in range(subkey_count)]  # type: ignore[union-attr]
        except FileNotFoundError:
            return []
        except OSError:
            return []

    def enum_value_names(self, root: int, path: str) -> List[str]:
        try:
            with self._open(root, path) as handle:
                _, value_count, _ = winreg.QueryInfoKey(handle)  # type: ignore[union-attr]
                return [winreg.EnumValue(handle, index)[0] for index in range(value_count)]  # type: ignore[union-attr]
        except FileNotFoundError:
            return []
        except OSError:
            return []

    def read_string(self, root: int, path: str, name: str) -> str | None:
        value = self._query(root, path, name)
        if value is None or isinstance(value, (list, bytes)):
            return None
        return str(value)

    def read_multi_string(self, root: int, path: str, name: str) -> List[str] | None:
        value = self._query(root, path, name)
        if value is None:
            return None
        if isinstance(value, str):
            return [value]
        return [str(item) for item in value]

    def read_dword(self, root: int, path: str, name: str) -> int | None:
        value = self._query(root, path, name)
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    def close(self) -> None:
        for handle in self._hives.values():
            try:
                winreg.CloseKey(handle)  # type: ignore[union-attr]
            except OSError:
                continue
        self._hives.clear()


class WmiRegistryReader(RegistryReader):
    """!
    @brief Registry reader that calls WMI ``StdRegProv`` on a remote host.
    @details Used when alternate credentials are supplied, which
    ``ConnectRegistry`` cannot accept. Each ``StdRegProv`` method reports a
    non-zero ``ReturnValue`` for missing keys and values; those map to
    ``None``.
    """

    def __init__(self, host: str, username: str | None = None, password: str | None = None) -> None:
        self.host = host
        try:
            import pywintypes
            import win32com.client
        except ImportError as exc:
            raise HostUnreachableError(
                host,
                "pywin32 is required for credentialed remote access. Install with: pip install pywin32",
            ) from exc

        self._com_error = pywintypes.com_error
        try:
            locator = win32com.client.Dispatch("WbemScripting.SWbemLocator")
            services = locator.ConnectServer(host, r"root\default", username or None, password or None)
            self._provider = services.Get("StdRegProv")
        except pywintypes.com_error as exc:
            raise HostUnreachableError(host, exc) from exc

    def _call(self, method: str, root: int, path: str, name: str | None = None) -> Any | None:
        try:
            params = self._provider.Methods_(method).InParameters.SpawnInstance_()
            params.Properties_.Item("hDefKey").Value = root
            params.Properties_.Item("sSubKeyName").Value = path
            if name is not None:
                params.Properties_.Item("sValueName").Value = name
            result = self._provider.ExecMethod_(method, params)
        except self._com_error as exc:
            raise HostUnreachableError(self.host, exc) from exc
        if int(result.Properties_.Item("ReturnValue").Value) != 0:
            return None
        return result

    def enum_subkeys(self, root: int, path: str) -> List[str]:
        result = self._call("EnumKey", root, path)
        names = result.Properties_.Item("sNames").Value if result is not None else None
        return [str(item) for item in names] if names else []

    def enum_value_names(self, root: int, path: str) -> List[str]:
        result = self._call("EnumValues", root, path)
        names = result.Properties_.Item("sNames").Value if result is not None else None
        return [str(item) for item in names] if names else []

    def read_string(self, root: int, path: str, name: str) -> str | None:
        result = self._call("GetStringValue", root, path, name)
        if result is None:
            return None
        value = result.Properties_.Item("sValue").Value
        return None if value is None else str(value)

    def read_multi_string(self, root: int, path: str, name: str) -> List[str] | None:
        result = self._call("GetMultiStringValue", root, path, name)
        if result is None:
            return None
        value = result.Properties_.Item("sValue").Value
        return [str(item) for item in value] if value else []

    def read_dword(self, root: int, path: str, name: str) -> int | None:
        result = self._call("GetDWORDValue", root, path, name)
        if result is None:
            return None
        value = result.Properties_.Item("uValue").Value
        return None if value is None else int(value)


def is_local_host(host: str | None) -> bool:
    """!
    @brief Determine whether ``host`` names the machine running the tool.
    """

    if host is None:
        return True
    candidate = host.strip().lower()
    if candidate in _LOCAL_HOST_ALIASES:
        return True
    return candidate == platform.node().lower()


def open_reader(
    host: str | None = None,
    *,
    username: str | None = None,
    password: str | None = None,
) -> RegistryReader:
    """!
    @brief Create the registry reader appropriate for ``host``.
    @details Credentials select WMI; a remote host without credentials uses
    ``ConnectRegistry``; anything else reads the local registry. The remote
    ``HKLM`` hive is opened eagerly so connectivity problems surface here.
    @throws HostUnreachableError When the host cannot be reached.
    """

    machine_logger = logging_ext.get_machine_logger()
    local = is_local_host(host)
    if not local and username:
        transport = "wmi"
        reader: RegistryReader = WmiRegistryReader(str(host), username, password)
    else:
        transport = "winreg"
        try:
            winreg_reader = WinRegReader(None if local else host)
        except FileNotFoundError as exc:
            raise HostUnreachableError(host or platform.node() or "localhost", exc) from exc
        if not local:
            winreg_reader.connect()
        reader = winreg_reader

    machine_logger.info(
        "registry_reader_open",
        extra={"event": "registry_reader_open", "host": reader.host, "transport": transport},
    )
    return reader


def hive_name(root: int) -> str:
    """!
    @brief Provide a friendly identifier for a registry hive.
    """

    for name, value in constants.REGISTRY_ROOTS.items():
        if value == root:
            return name
    return hex(root)


def join_path(*parts: str) -> str:
    """!
    @brief Join registry path segments with single backslashes.
    """

    return "\\".join(part.strip("\\") for part in parts if part and part.strip("\\"))


__all__ = [
    "HostUnreachableError",
    "RegistryReader",
    "WinRegReader",
    "WmiRegistryReader",
    "hive_name",
    "is_local_host",
    "join_path",
    "open_reader",
]
