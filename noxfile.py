import nox

PYTHONS = ["3.11", "3.12", "3.13"]


@nox.session(python=PYTHONS)
def tests(session):
    session.install("-e", ".[dev]")
    session.run("pytest", *(session.posargs or ["tests"]))


@nox.session(python=PYTHONS[-1])
def unit(session):
    """Everything except the tests that open real sockets."""
    session.install("-e", ".[dev]")
    session.run(
        "pytest",
        "tests",
        "--ignore=tests/test_integration.py",
        *session.posargs,
    )
