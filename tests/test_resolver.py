from __future__ import annotations

import socket

import pytest

from kubernoisy.resolver import NameNotFound, SystemResolver


def _addrinfo(*addresses):
    return [(socket.AF_INET, socket.SOCK_STREAM, socket.IPPROTO_TCP, "", (address, 0)) for address in addresses]


def test_resolves_unique_addresses(monkeypatch):
    monkeypatch.setattr(socket, "getaddrinfo", lambda *args, **kwargs: _addrinfo("10.0.0.1", "10.0.0.2", "10.0.0.1"))

    assert SystemResolver().resolve("kubernoisy-abc") == ["10.0.0.1", "10.0.0.2"]


def test_unknown_name_is_not_found(monkeypatch):
    def fail(*args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(socket, "getaddrinfo", fail)

    with pytest.raises(NameNotFound) as excinfo:
        SystemResolver().resolve("kubernoisy-abc")
    assert excinfo.value.name == "kubernoisy-abc"


def test_other_failures_propagate(monkeypatch):
    def fail(*args, **kwargs):
        raise socket.gaierror(socket.EAI_AGAIN, "Temporary failure in name resolution")

    monkeypatch.setattr(socket, "getaddrinfo", fail)

    with pytest.raises(socket.gaierror):
        SystemResolver().resolve("kubernoisy-abc")
