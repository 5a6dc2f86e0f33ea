import pytest
import numpy as np
import requests
from unittest.mock import MagicMock

from orbitcore.ephemeris.horizons import (
    PLANET_IDS,
    FailureKind,
    FetchFailure,
    FetchSuccess,
    HorizonsClient,
    parse_vectors_table,
    resolve_body,
)
from orbitcore.errors import EmptyResultError, FormatError, InvalidInputError, NetworkError

SAMPLE_RESULT = """\
API VERSION: 1.2
API SOURCE: NASA/JPL Horizons API

*******************************************************************************
            JDTDB,            Calendar Date (TDB),                      X,                      Y,                      Z,                     VX,                     VY,                     VZ,
**************************************************************************************************************************************************
$$SOE
2461222.500000000, A.D. 2026-Jul-01 00:00:00.0000,  1.893577329946396E+07, -1.540389530474391E+08,  8.671362102562189E+03,  2.965453542024018E+01,  3.566384052838524E+00, -1.177497655062214E-03,
2461223.500000000, A.D. 2026-Jul-02 00:00:00.0000,  2.149453702498457E+07, -1.537040035211290E+08,  8.549071707701683E+03,  2.957013113413612E+01,  4.187318541722046E+00, -1.652048003016425E-03,

nan, A.D. 2026-Jul-03 00:00:00.0000, 1, 2, 3, 4, 5, 6,
2461224.500000000, A.D. 2026-Jul-03 00:00:00.0000,  2.404542917064123E+07, -1.533154393598937E+08,  8.385740569221467E+03,  2.947778917291411E+01,  4.805885541046516E+00, -2.129052015787766E-03,
$$EOE
*******************************************************************************
"""


def _response(ok=True, status=200, payload=None, text=""):
    response = MagicMock()
    response.ok = ok
    response.status_code = status
    response.text = text
    response.json.return_value = payload
    return response


def test_parse_vectors_table():
    states = parse_vectors_table(SAMPLE_RESULT)

    assert len(states) == 3
    assert [s.epoch for s in states] == [2461222.5, 2461223.5, 2461224.5]
    assert states[0].calendar_date == "2026-Jul-01 00:00:00.0000"
    np.testing.assert_allclose(states[0].position, [1.893577329946396E+07, -1.540389530474391E+08, 8.671362102562189E+03])
    np.testing.assert_allclose(states[2].velocity, [2.947778917291411E+01, 4.805885541046516E+00, -2.129052015787766E-03])


def test_parse_skips_non_finite_and_short_rows():
    text = "\n".join([
        "$$SOE",
        "n.a., A.D. 2026-Jul-01, 1, 2, 3, 4, 5, 6,",
        "inf, A.D. 2026-Jul-01, 1, 2, 3, 4, 5, 6,",
        "2461222.5, A.D. 2026-Jul-01, 1, 2, 3",
        "2461223.5, A.D. 2026-Jul-02, 1, 2, 3, 4, 5, 6, 99, 100",
        "$$EOE",
    ])
    states = parse_vectors_table(text)
    assert len(states) == 1
    np.testing.assert_array_equal(states[0].velocity, [4.0, 5.0, 6.0])


def test_parse_missing_markers():
    with pytest.raises(FormatError):
        parse_vectors_table("No ephemeris for target \"Pluto\" prior to A.D. 1700")
    with pytest.raises(FormatError):
        parse_vectors_table("$$SOE\n2461222.5, A.D. 2026-Jul-01, 1, 2, 3, 4, 5, 6,\n")


def test_parse_no_surviving_rows():
    with pytest.raises(EmptyResultError):
        parse_vectors_table("$$SOE\nnan, x, 1, 2, 3, 4, 5, 6\n$$EOE")


def test_parse_malformed_vector_column():
    with pytest.raises(FormatError):
        parse_vectors_table("$$SOE\n2461222.5, A.D. 2026-Jul-01, 1, two, 3, 4, 5, 6,\n$$EOE")


def test_resolve_body():
    assert resolve_body("Earth") == "399"
    assert resolve_body(" MARS ") == "499"
    with pytest.raises(InvalidInputError) as excinfo:
        resolve_body("pluto")
    assert excinfo.value.options == list(PLANET_IDS)
    assert len(excinfo.value.options) == 8
    with pytest.raises(InvalidInputError):
        resolve_body(None)


def test_client_builds_sun_centred_query():
    session = MagicMock()
    session.get.return_value = _response(payload={"result": SAMPLE_RESULT})
    client = HorizonsClient(base_url="https://horizons.test/api", timeout=12.0, session=session)

    outcome = client.fetch("499", "2026-07-01", "2026-07-03", 2)

    assert isinstance(outcome, FetchSuccess)
    assert len(outcome.series) == 3
    args, kwargs = session.get.call_args
    assert args[0] == "https://horizons.test/api"
    assert kwargs["timeout"] == 12.0
    params = kwargs["params"]
    assert params["COMMAND"] == "'499'"
    assert params["CENTER"] == "'500@10'"
    assert params["STEP_SIZE"] == "'2'"
    assert params["START_TIME"] == "'2026-07-01'"
    assert params["STOP_TIME"] == "'2026-07-03'"
    assert params["EPHEM_TYPE"] == "'VECTORS'"
    assert params["CSV_FORMAT"] == "'YES'"


def test_client_http_error_is_network_failure():
    session = MagicMock()
    session.get.return_value = _response(ok=False, status=500, text="x" * 1000)
    outcome = HorizonsClient(session=session).fetch("399", "2026-01-01", "2026-02-01", 5)

    assert isinstance(outcome, FetchFailure)
    assert outcome.kind is FailureKind.NETWORK
    assert outcome.detail.startswith("Horizons HTTP 500: ")
    assert len(outcome.detail) == len("Horizons HTTP 500: ") + 200
    assert isinstance(outcome.to_exception(), NetworkError)


def test_client_connection_error_is_network_failure():
    session = MagicMock()
    session.get.side_effect = requests.ConnectionError("connection refused")
    outcome = HorizonsClient(session=session).fetch("399", "2026-01-01", "2026-02-01", 5)

    assert isinstance(outcome, FetchFailure)
    assert outcome.kind is FailureKind.NETWORK
    assert "connection refused" in outcome.detail


def test_client_missing_result_is_format_failure():
    session = MagicMock()
    session.get.return_value = _response(payload={"error": "Cannot interpret date"})
    outcome = HorizonsClient(session=session).fetch("399", "garbage", "2026-02-01", 5)

    assert isinstance(outcome, FetchFailure)
    assert outcome.kind is FailureKind.FORMAT
    assert isinstance(outcome.to_exception(), FormatError)


def test_client_non_json_is_format_failure():
    session = MagicMock()
    response = _response()
    response.json.side_effect = ValueError("Expecting value")
    session.get.return_value = response
    outcome = HorizonsClient(session=session).fetch("399", "2026-01-01", "2026-02-01", 5)

    assert outcome.kind is FailureKind.FORMAT


def test_client_empty_table_is_empty_failure():
    session = MagicMock()
    session.get.return_value = _response(payload={"result": "$$SOE\n$$EOE\n"})
    outcome = HorizonsClient(session=session).fetch("399", "2026-01-01", "2026-02-01", 5)

    assert outcome.kind is FailureKind.EMPTY
    assert isinstance(outcome.to_exception(), EmptyResultError)
