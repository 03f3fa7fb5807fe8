import logging
import threading

import pytest

from schemagen import properties as P
from schemagen.environment import build_environment
from schemagen.errors import EnvironmentConstructionError, GenerationFailure
from schemagen.invoker import GenerationInvocation, InvocationState, describe_properties, invoke_generation
from schemagen.provider import GeneratedScripts, current_environment
from schemagen.provider.errors import PersistenceError


@pytest.fixture
def env(tmp_path):
    return build_environment(tmp_path)


def _config(tmp_path, **extra):
    return {P.APP_LOCATION: str(tmp_path), **extra}


def test_worker_runs_with_its_own_context(tmp_path, env):
    seen = {}

    def fake(unit_name, props, environment=None):
        seen["thread"] = threading.current_thread()
        seen["ambient"] = current_environment()
        seen["explicit"] = environment
        seen["props"] = props
        return GeneratedScripts(tmp_path / "c.sql", tmp_path / "d.sql")

    outcome = invoke_generation("u", _config(tmp_path), env, generate=fake)

    assert outcome.ok
    assert outcome.create_script == tmp_path / "c.sql"
    assert outcome.drop_script == tmp_path / "d.sql"
    assert seen["thread"] is not threading.current_thread()
    assert seen["ambient"] is env
    assert seen["explicit"] is env
    # 호출자 쪽 컨텍스트는 그대로
    assert current_environment() is None
    with pytest.raises(TypeError):
        seen["props"]["x"] = "y"


def test_state_machine_runs_once(tmp_path, env):
    inv = GenerationInvocation("u", _config(tmp_path), env, generate=lambda *a, **kw: GeneratedScripts(None, None))
    assert inv.state is InvocationState.CREATED
    outcome = inv.run()
    assert inv.state is InvocationState.SUCCEEDED
    assert inv.outcome is outcome
    with pytest.raises(RuntimeError):
        inv.run()


def test_config_is_copied_at_handoff(tmp_path, env):
    config = _config(tmp_path)
    inv = GenerationInvocation("u", config, env, generate=lambda *a, **kw: GeneratedScripts(None, None))
    config["late"] = "change"
    assert "late" not in inv.config


def test_provider_error_is_wrapped(tmp_path, env):
    cause = PersistenceError("bad mapping")

    def fake(*args, **kwargs):
        raise cause

    inv = GenerationInvocation("orders-pu", _config(tmp_path), env, generate=fake)
    outcome = inv.run()
    assert not outcome.ok
    assert inv.state is InvocationState.FAILED
    assert isinstance(outcome.error, GenerationFailure)
    assert outcome.error.cause is cause
    assert "bad mapping" in str(outcome.error)
    with pytest.raises(GenerationFailure):
        outcome.raise_for_failure()


def test_schemagen_errors_pass_through(tmp_path, env):
    err = GenerationFailure("already wrapped")

    def fake(*args, **kwargs):
        raise err

    assert invoke_generation("u", _config(tmp_path), env, generate=fake).error is err


def test_environment_cannot_be_shared(tmp_path, env):
    ok = lambda *a, **kw: GeneratedScripts(None, None)  # noqa: E731
    assert invoke_generation("a", _config(tmp_path), env, generate=ok).ok
    second = invoke_generation("b", _config(tmp_path), env, generate=ok)
    assert not second.ok
    assert isinstance(second.error, EnvironmentConstructionError)


def test_timeout_reports_failure(tmp_path, env):
    release = threading.Event()

    def slow(*args, **kwargs):
        release.wait(5)
        return GeneratedScripts(None, None)

    try:
        inv = GenerationInvocation("u", _config(tmp_path), env, generate=slow, timeout=0.05)
        outcome = inv.run()
        assert inv.state is InvocationState.FAILED
        assert isinstance(outcome.error, GenerationFailure)
        assert "timed out" in str(outcome.error)
    finally:
        release.set()


def test_password_is_masked_in_debug_dump(tmp_path, env, caplog):
    caplog.set_level(logging.DEBUG, logger="schemagen.invoker")
    config = _config(tmp_path, **{P.JDBC_PASSWORD: "s3cret", P.JDBC_USER: "sa"})
    invoke_generation("u", config, env, generate=lambda *a, **kw: GeneratedScripts(None, None))

    assert "s3cret" not in caplog.text
    assert f"{P.JDBC_PASSWORD}=****" in caplog.text
    assert f"{P.JDBC_USER}=sa" in caplog.text
    assert "Generating schema for persistence unit u" in caplog.text


def test_describe_properties_keeps_none():
    assert describe_properties({P.JTA_DATASOURCE: None, P.JDBC_PASSWORD: None}) == (
        f"{P.JTA_DATASOURCE}=None\n{P.JDBC_PASSWORD}=None"
    )


def test_worker_exit_is_reported_as_failure(tmp_path, env):
    def exits(*args, **kwargs):
        raise SystemExit(3)

    inv = GenerationInvocation("u", _config(tmp_path), env, generate=exits)
    outcome = inv.run()
    assert inv.state is InvocationState.FAILED
    assert isinstance(outcome.error, GenerationFailure)
    assert isinstance(outcome.error.cause, SystemExit)


def test_worker_without_result_is_a_failure(tmp_path, env):
    outcome = invoke_generation("u", _config(tmp_path), env, generate=lambda *a, **kw: None)
    assert isinstance(outcome.error, GenerationFailure)
    assert "without a result" in str(outcome.error)


def test_static_environment_failure_is_a_generation_failure(orders_root, script_props):
    # orders-pu 의 Order 는 소스 없는 엔티티라 dynamic 없이는 해석할 수 없다
    env = build_environment(orders_root, dynamic=False)
    outcome = invoke_generation("orders-pu", script_props, env)

    assert not outcome.ok
    assert isinstance(outcome.error, GenerationFailure)
    assert outcome.error.kind == "GenerationFailure"
    assert isinstance(outcome.error.cause, PersistenceError)
    assert "com.acme.Order" in str(outcome.error)


def test_environment_errors_inside_worker_are_wrapped(tmp_path, env):
    cause = EnvironmentConstructionError("late lookup failed")

    def fake(*args, **kwargs):
        raise cause

    outcome = invoke_generation("u", _config(tmp_path), env, generate=fake)
    assert isinstance(outcome.error, GenerationFailure)
    assert outcome.error.cause is cause


def test_concurrent_invocations_are_independent(tmp_path):
    envs = {name: build_environment(tmp_path) for name in ("a", "b")}
    barrier = threading.Barrier(2, timeout=5)
    seen = {}

    def fake(unit_name, props, environment=None):
        # 두 워커가 동시에 실행 중일 때 각자의 컨텍스트를 본다
        barrier.wait()
        seen[unit_name] = (current_environment(), props["tag"])
        return GeneratedScripts(tmp_path / f"{unit_name}.sql", None)

    outcomes = {}

    def call(name):
        outcomes[name] = invoke_generation(name, _config(tmp_path, tag=name), envs[name], generate=fake)

    callers = [threading.Thread(target=call, args=(name,)) for name in envs]
    for t in callers:
        t.start()
    for t in callers:
        t.join()

    assert all(o.ok for o in outcomes.values())
    assert outcomes["a"].create_script == tmp_path / "a.sql"
    assert outcomes["b"].create_script == tmp_path / "b.sql"
    assert seen["a"] == (envs["a"], "a")
    assert seen["b"] == (envs["b"], "b")
