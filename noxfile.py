from __future__ import annotations

import nox

nox.options.error_on_missing_interpreters = True


def tests_impl(
    session: nox.Session,
    extras: str = "test",
    pytest_extra_args: list[str] = [],
) -> None:
    # Install deps and the package itself.
    session.install(f".[{extras}]" if extras else ".")
    # Print the Python version and bytesize.
    session.run("python", "--version")
    session.run("python", "-c", "import struct; print(struct.calcsize('P') * 8)")
    # Print the resolver stack versions.
    session.run(
        "python",
        "-c",
        "import dns.version, trio; print('dnspython', dns.version.version, 'trio', trio.__version__)",
    )

    # Environment variables being passed to the pytest run.
    pytest_session_envvars = {
        "PYTHONWARNINGS": "always::DeprecationWarning",
    }

    session.run(
        "python",
        "-m",
        "coverage",
        "run",
        "--parallel-mode",
        "-m",
        "pytest",
        "-v",
        "-ra",
        "--tb=native",
        "--durations=10",
        "--strict-config",
        "--strict-markers",
        *pytest_extra_args,
        *(session.posargs or ("test/",)),
        env=pytest_session_envvars,
    )


@nox.session(python=["3.9", "3.10", "3.11", "3.12", "3.13"])
def test(session: nox.Session) -> None:
    tests_impl(session)


@nox.session(python="3")
def test_hypothesis_ci(session: nox.Session) -> None:
    """Run the property-based tests with the larger CI example budget."""
    tests_impl(
        session,
        pytest_extra_args=["--hypothesis-profile=ci", "-k", "hypothesis"],
    )


@nox.session
def mypy(session: nox.Session) -> None:
    """Run mypy."""
    session.install(".[test]", "mypy", "nox", "typing_extensions")
    session.run("mypy", "--version")
    session.run(
        "mypy",
        "-m",
        "noxfile",
        "-p",
        "netservice",
        "-p",
        "test",
    )
