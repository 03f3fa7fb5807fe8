import threading
import zipfile

import pytest

from conftest import write
from schemagen.environment import ExecutionEnvironment, HostEnvironment, TypeKind, build_environment
from schemagen.errors import ConfigurationError, EnvironmentConstructionError, TypeResolutionError


def test_search_root_required():
    with pytest.raises(ConfigurationError):
        build_environment(None)
    with pytest.raises(ConfigurationError):
        build_environment("")


def test_missing_or_invalid_search_root(tmp_path):
    with pytest.raises(EnvironmentConstructionError):
        build_environment(tmp_path / "nope")
    plain = write(tmp_path, "notes.txt", "not an archive")
    with pytest.raises(EnvironmentConstructionError):
        build_environment(plain)


def test_directory_root_resolves_sources_and_resources(tmp_path):
    write(tmp_path, "META-INF/persistence.xml", "<persistence/>")
    write(tmp_path, "com/acme/Order.java", "package com.acme; class Order {}")

    with build_environment(tmp_path) as env:
        assert env.find_resource("META-INF/persistence.xml").read_text() == "<persistence/>"
        assert env.find_resource("META-INF/orm.xml") is None

        rt = env.resolve("com.acme.Order")
        assert rt.kind is TypeKind.COMPILED
        assert rt.simple_name == "Order"
        assert "class Order" in rt.read_source()

        assert [p.name for p in env.iter_sources(".java")] == ["Order.java"]


def test_archive_root(tmp_path):
    jar = tmp_path / "model.jar"
    with zipfile.ZipFile(jar, "w") as zf:
        zf.writestr("META-INF/persistence.xml", "<persistence/>")
        zf.writestr("com/acme/Order.java", "package com.acme; class Order {}")

    env = build_environment(jar)
    try:
        assert env.find_resource("META-INF/persistence.xml").read_text() == "<persistence/>"
        assert env.resolve("com.acme.Order").kind is TypeKind.COMPILED
    finally:
        env.close()


def test_search_root_comes_before_fallback(tmp_path):
    root = tmp_path / "resources"
    classes = tmp_path / "classes"
    write(root, "META-INF/persistence.xml", "root")
    write(classes, "META-INF/persistence.xml", "classes")
    write(classes, "com/acme/Item.java", "class Item {}")

    env = build_environment(root, fallback=classes)
    assert [r.read_text() for r in env.find_resources("META-INF/persistence.xml")] == ["root", "classes"]
    assert env.resolve("com.acme.Item").kind is TypeKind.COMPILED


def test_missing_fallback_is_skipped(tmp_path):
    env = build_environment(tmp_path, fallback=tmp_path / "target" / "classes")
    assert len(env.locations) == 1


def test_host_types_resolve_but_host_resources_do_not_leak(tmp_path):
    env = build_environment(tmp_path)
    assert env.resolve("String").name == "java.lang.String"
    assert env.resolve("java.math.BigDecimal").kind is TypeKind.HOST
    assert env.find_resources("META-INF/persistence.xml") == []
    assert HostEnvironment().find_resources("anything") == []


def test_virtual_types_are_cached(tmp_path):
    env = build_environment(tmp_path)
    first = env.resolve("com.acme.Ghost")
    assert first.kind is TypeKind.VIRTUAL
    assert env.resolve("com.acme.Ghost") is first
    assert env.lookup("com.acme.Ghost") is None


def test_virtual_synthesis_is_thread_safe(tmp_path):
    env = build_environment(tmp_path)
    seen = []

    def worker():
        seen.append(env.resolve("com.acme.Shared"))

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len({id(x) for x in seen}) == 1


def test_static_environment_rejects_unknown_types(tmp_path):
    env = build_environment(tmp_path, dynamic=False)
    with pytest.raises(TypeResolutionError):
        env.resolve("com.acme.Ghost")
    assert env.resolve("Long").kind is TypeKind.HOST


def test_environment_is_claimed_once(tmp_path):
    env = build_environment(tmp_path)
    assert isinstance(env, ExecutionEnvironment)
    env.claim()
    with pytest.raises(EnvironmentConstructionError):
        env.claim()


def test_blank_search_root_is_rejected():
    with pytest.raises(ConfigurationError):
        build_environment("   ")
