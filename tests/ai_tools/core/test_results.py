from __future__ import annotations

from http import HTTPStatus

import pytest

from ai_tools.core.exceptions import (
    HTTP_STATUS_MAP,
    AiToolsError,
    ChoiceIndexError,
    DeserializationError,
    ExtractionError,
    ProviderError,
    TransportError,
)
from ai_tools.core.results import ChatCompletion, Failure, FailureKind, Success


def _completion(*texts: str) -> ChatCompletion:
    return ChatCompletion.model_validate(
        {'choices': [{'index': i, 'message': {'role': 'assistant', 'content': t}} for i, t in enumerate(texts)]}
    )


def test_out_of_range_choice_is_a_distinct_error() -> None:
    completion = _completion('a', 'b')
    assert completion.content(1) == 'b'
    with pytest.raises(ChoiceIndexError):
        completion.content(2)
    with pytest.raises(IndexError):
        _completion().content(0)


def test_success_unwrap() -> None:
    result = Success(value=42)
    assert result.is_success is True
    assert result.unwrap() == 42


@pytest.mark.parametrize(
    ('kind', 'error_cls'),
    [
        (FailureKind.extraction, ExtractionError),
        (FailureKind.deserialization, DeserializationError),
        (FailureKind.transport, TransportError),
    ],
)
def test_failure_maps_kind_to_error(kind: FailureKind, error_cls: type[AiToolsError]) -> None:
    failure = Failure(kind=kind, message='boom')
    assert failure.is_success is False
    with pytest.raises(error_cls, match='boom'):
        failure.unwrap()


def test_error_json_and_status_map() -> None:
    err = ProviderError('upstream said no', status_code=400)
    assert err.to_json() == {'error': {'type': 'ProviderError', 'message': 'upstream said no'}}
    assert HTTP_STATUS_MAP[ProviderError] is HTTPStatus.BAD_GATEWAY
    assert AiToolsError().message == 'AiToolsError'
