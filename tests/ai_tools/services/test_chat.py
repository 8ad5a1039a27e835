from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest
from pydantic import BaseModel
from scripted_transport import CHAT_URL, IMAGE_URL

from ai_tools.adapters.httpx_transport import HttpxTransport
from ai_tools.client import AiTools
from ai_tools.core.abc import TransportResponse
from ai_tools.core.exceptions import ChoiceIndexError, ExtractionError, ProviderError, TransportError
from ai_tools.core.results import Failure, FailureKind, Success
from ai_tools.core.types import Message, Role

if TYPE_CHECKING:
    from scripted_transport import ScriptedTransport

    from ai_tools.core.settings import SessionSnapshot

ANALYZE_URL = f'{IMAGE_URL}/analyze'


class Fruit(BaseModel):
    name: str
    calories: int


@pytest.mark.asyncio
async def test_chat_string_round_trip(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add_chat(CHAT_URL, 'X')

    assert await tools.get_chat_response_string('ping') == 'X'

    call = transport.calls_to(CHAT_URL)[0]
    assert call.method == 'POST'
    assert call.headers['Authorization'] == 'Bearer sk-test'
    assert call.headers['Accept'] == 'application/json'
    assert call.json()['messages'][-1] == {'role': 'user', 'content': 'ping'}
    assert call.json()['max_tokens'] == 300


@pytest.mark.asyncio
async def test_non_2xx_is_failure_with_raw_body(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add(CHAT_URL, TransportResponse(status_code=429, body=b'rate limited'))

    result = await tools.get_chat_response('ping')

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.provider
    assert result.message == 'rate limited'


@pytest.mark.asyncio
async def test_transport_exception_becomes_failure(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add(CHAT_URL, TransportError('connection reset'))

    result = await tools.get_chat_response_structured('ping')

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.transport
    assert result.message.startswith('Unhandled Error: ')


@pytest.mark.asyncio
async def test_low_level_os_error_is_mapped(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add(CHAT_URL, ConnectionRefusedError('refused'))

    result = await tools.get_chat_response('ping')

    assert isinstance(result, Failure)
    assert result.message == 'Unhandled Error: refused'


@pytest.mark.asyncio
async def test_string_helper_raises_on_failure_and_bad_choice(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add(CHAT_URL, TransportResponse(status_code=500, body=b'upstream exploded'))
    with pytest.raises(ProviderError, match='upstream exploded'):
        await tools.get_chat_response_string('ping')

    transport.routes.clear()
    transport.add_chat(CHAT_URL, 'only one')
    with pytest.raises(ChoiceIndexError):
        await tools.get_chat_response_string('ping', choice=1)


@pytest.mark.asyncio
async def test_json_mode_flag(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add_chat(CHAT_URL, '{}')

    result = await tools.get_chat_response('ping', json_mode=True)

    assert isinstance(result, Success)
    assert transport.calls_to(CHAT_URL)[0].json()['response_format'] == {'type': 'json_object'}


@pytest.mark.asyncio
async def test_string_helper_attaches_image_urls(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add_chat(CHAT_URL, 'a cat')

    await tools.get_chat_response_string('what is this?', image_urls=['https://img/cat.png', 'Error'])

    content = transport.calls_to(CHAT_URL)[0].json()['messages'][-1]['content']
    assert content == [
        {'type': 'text', 'text': 'what is this?'},
        {'type': 'image_url', 'image_url': {'url': 'https://img/cat.png'}},
    ]


@pytest.mark.asyncio
async def test_typed_object(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add_chat(CHAT_URL, 'Sure! {"name": "apple", "calories": 95} Enjoy.')

    fruit = await tools.get_chat_response_object('Give me a fruit.', Fruit)

    assert fruit == Fruit(name='apple', calories=95)
    body = transport.calls_to(CHAT_URL)[0].json()
    assert body['response_format'] == {'type': 'json_object'}
    prompt = body['messages'][-1]['content']
    assert prompt.startswith('Give me a fruit. Return response in this Json format. This will not be read by a human.')
    assert prompt.endswith('{"name": "", "calories": 0}')


@pytest.mark.asyncio
async def test_typed_object_failures(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add_chat(CHAT_URL, 'I cannot help with that.')
    with pytest.raises(ExtractionError):
        await tools.get_chat_response_object('Give me a fruit.', Fruit)

    transport.routes.clear()
    transport.add(CHAT_URL, TransportResponse(status_code=401, body=b'bad key'))
    with pytest.raises(ProviderError, match='bad key'):
        await tools.get_chat_response_object('Give me a fruit.', Fruit)


@pytest.mark.asyncio
async def test_continue_conversation(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add_chat(CHAT_URL, 'Arr')

    completion = await tools.continue_chat_conversation(
        [
            {'role': 'system', 'content': 'Talk like a pirate'},
            {'role': 'user', 'content': 'hello'},
            Message(role=Role.assistant, content='Ahoy'),
            {'role': 'user', 'content': 'again'},
        ]
    )

    assert completion.content() == 'Arr'
    messages = transport.calls_to(CHAT_URL)[0].json()['messages']
    assert [m['role'] for m in messages] == ['system', 'user', 'assistant', 'user']
    assert messages[0]['content'] == 'Talk like a pirate'


@pytest.mark.asyncio
async def test_continue_conversation_raises(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add(CHAT_URL, TransportResponse(status_code=400, body=b'context too long'))
    with pytest.raises(ProviderError, match='context too long'):
        await tools.continue_chat_conversation([{'role': 'user', 'content': 'hi'}])


@pytest.mark.asyncio
async def test_multiple_responses_skip_failures(tools: AiTools, transport: ScriptedTransport) -> None:
    ok = TransportResponse(status_code=200, body=b'{"choices": [{"message": {"content": "one"}}]}')
    transport.add(CHAT_URL, ok, TransportResponse(status_code=500, body=b'oops'), ok)

    assert await tools.get_multiple_chat_responses('ping', 3) == ['one', 'one']
    assert len(transport.calls_to(CHAT_URL)) == 3


@pytest.mark.asyncio
async def test_session_floor_applies_after_setter(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add_chat(CHAT_URL, 'ok')
    tools.set_default_max_tokens(1000)

    await tools.get_chat_response('ping')

    assert transport.calls_to(CHAT_URL)[0].json()['max_tokens'] == 1000


@pytest.mark.asyncio
async def test_analyze_image(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add_json(ANALYZE_URL, {'labels': [{'name': 'cat'}, {'name': 'sofa'}]})

    assert await tools.analyze_image('https://img/cat.png') == ['cat', 'sofa']
    assert transport.calls_to(ANALYZE_URL)[0].json() == {'image_url': 'https://img/cat.png'}

    await tools.analyze_image('https://img/cat.png', '{"image_url": "x", "detail": "high"}')
    assert transport.calls_to(ANALYZE_URL)[1].json() == {'image_url': 'x', 'detail': 'high'}


@pytest.mark.asyncio
async def test_analyze_local_image(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add_json(ANALYZE_URL, {'labels': [{'name': 'dog'}]})

    assert await tools.analyze_local_image(b'\xff\xd8jpeg') == ['dog']
    call = transport.calls_to(ANALYZE_URL)[0]
    assert call.body == b'\xff\xd8jpeg'
    assert call.headers['Content-Type'] == 'image/jpeg'


@pytest.mark.asyncio
async def test_analyze_image_raises_on_failure(tools: AiTools, transport: ScriptedTransport) -> None:
    transport.add(ANALYZE_URL, TransportResponse(status_code=404, body=b'no such endpoint'))
    with pytest.raises(ProviderError, match='no such endpoint'):
        await tools.analyze_image('https://img/cat.png')

    transport.routes.clear()
    transport.add(ANALYZE_URL, TransportError('timeout'))
    with pytest.raises(TransportError):
        await tools.analyze_image('https://img/cat.png')


@pytest.mark.asyncio
async def test_check_api_health(tools: AiTools, transport: ScriptedTransport) -> None:
    health_url = f'{CHAT_URL}/health'
    transport.add(health_url, TransportResponse(status_code=200, body=b'ok'))
    assert await tools.check_api_health() == 'ok'

    transport.routes.clear()
    transport.add(health_url, TransportError('unreachable'))
    assert await tools.check_api_health() == 'Unhandled Error: unreachable'


@pytest.mark.asyncio
async def test_malformed_endpoint_is_transport_failure(settings: SessionSnapshot) -> None:
    transport = HttpxTransport(client=httpx.AsyncClient(transport=httpx.MockTransport(lambda _: httpx.Response(200))))
    async with AiTools(transport, settings=settings) as tools:
        tools.set_chat_endpoint('https://provider.test/\x00')
        result = await tools.get_chat_response('hi')

    assert isinstance(result, Failure)
    assert result.kind is FailureKind.transport
    assert result.message.startswith('Unhandled Error: ')
