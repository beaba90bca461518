"""
Testes para o módulo vidfinder.core.extractor (orquestração da tarefa).
"""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from conftest import FakePage, FakeResponse
from vidfinder.core.blocklist import DomainBlocklist
from vidfinder.core.errors import ErrorKind
from vidfinder.core.extractor import LAUNCH_FAILURE_MESSAGE, ExtractionTask, VideoExtractor
from vidfinder.core.models import ExtractionRequest, Failure, NotFound, Success, TaskState

WINDOW_MS = 20


def make_request(**kwargs) -> ExtractionRequest:
    kwargs.setdefault("target_url", "https://example.com/watch")
    kwargs.setdefault("observation_window_ms", WINDOW_MS)
    return ExtractionRequest(**kwargs)


@pytest.mark.asyncio
async def test_extract_success_example_scenario(make_env):
    env = make_env(FakePage(responses=[
        FakeResponse("https://example.com/media/ad-manifest.mp4", "video/mp4"),
        FakeResponse("https://example.com/media/manifest", "text/html"),
        FakeResponse("https://example.com/media/stream-manifest.m3u8", "application/x-mpegurl"),
    ]))
    extractor = VideoExtractor(playwright_factory=env.factory)
    result = await extractor.extract(make_request(must_contain={"manifest"}, must_not_contain={"ad"}))

    assert result == Success("https://example.com/media/stream-manifest.m3u8")
    assert result.to_dict() == {
        "status": "success",
        "videoUrl": "https://example.com/media/stream-manifest.m3u8",
    }
    assert env.browser.close_count == 1


@pytest.mark.asyncio
async def test_extract_last_qualifying_wins(make_env):
    env = make_env(FakePage(
        responses=[FakeResponse("https://cdn.example.com/u1.m3u8", "application/vnd.apple.mpegurl")],
        late_responses=[
            FakeResponse("https://cdn.example.com/u2.mp4", "video/mp4"),
            FakeResponse("https://cdn.example.com/u3.mp4", "video/mp4"),
        ],
    ))
    result = await VideoExtractor(playwright_factory=env.factory).extract(make_request())
    assert result == Success("https://cdn.example.com/u3.mp4")


@pytest.mark.asyncio
async def test_extract_not_found_closes_browser(make_env):
    env = make_env(FakePage(responses=[FakeResponse("https://example.com/index.html", "text/html")]))
    task = VideoExtractor(playwright_factory=env.factory).create_task(
        make_request(must_contain={"manifest"}, must_not_contain={"ad"})
    )
    result = await task.run()

    assert isinstance(result, NotFound)
    assert result.to_dict()["message"] == "No video found"
    assert env.browser.close_count == 1
    assert task.history == [
        TaskState.IDLE,
        TaskState.LAUNCHING,
        TaskState.NAVIGATING_AND_OBSERVING,
        TaskState.COMPLETED,
        TaskState.CLOSED,
    ]


@pytest.mark.asyncio
async def test_extract_navigation_timeout(make_env):
    env = make_env(FakePage(goto_error=PlaywrightTimeoutError("Timeout 1ms exceeded.")))
    task = VideoExtractor(playwright_factory=env.factory).create_task(
        make_request(target_url="https://unreachable.example.com/", navigation_timeout_ms=1)
    )
    result = await task.run()

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.NAVIGATION_TIMEOUT
    assert "timeout" in result.message.lower()
    assert env.browser.close_count == 1
    assert task.observer.candidate is None
    assert task.observer.observed_count == 0


@pytest.mark.asyncio
async def test_extract_navigation_error(make_env):
    env = make_env(FakePage(goto_error=PlaywrightError("net::ERR_CONNECTION_REFUSED")))
    result = await VideoExtractor(playwright_factory=env.factory).extract(make_request())
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.NAVIGATION_ERROR
    assert env.browser.close_count == 1


@pytest.mark.asyncio
async def test_extract_unexpected_error_is_contained(make_env):
    env = make_env(FakePage(goto_error=ValueError("boom")))
    result = await VideoExtractor(playwright_factory=env.factory).extract(make_request())
    assert result == Failure("boom", ErrorKind.INTERNAL)
    assert env.browser.close_count == 1


@pytest.mark.asyncio
async def test_extract_close_error_does_not_escape(make_env):
    env = make_env(
        FakePage(responses=[FakeResponse("https://cdn.example.com/a.mp4", "video/mp4")]),
        close_error=PlaywrightError("browser has been closed"),
    )
    result = await VideoExtractor(playwright_factory=env.factory).extract(make_request())
    assert result == Success("https://cdn.example.com/a.mp4")
    assert env.browser.close_count == 1


@pytest.mark.asyncio
async def test_extract_unsupported_engine_never_launches(make_env):
    env = make_env()
    task = VideoExtractor(playwright_factory=env.factory).create_task(
        make_request(browser_engine="unsupported")
    )
    result = await task.run()

    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.UNSUPPORTED_ENGINE
    assert env.launch_calls == []
    assert env.manager.entered == 0
    assert env.page.goto_calls == []
    assert task.observer is None
    assert env.browser.close_count == 0


@pytest.mark.asyncio
async def test_extract_launch_failure(make_env):
    env = make_env(launch_error=PlaywrightError("Executable doesn't exist"))
    task = VideoExtractor(playwright_factory=env.factory).create_task(make_request())
    result = await task.run()

    assert result == Failure(LAUNCH_FAILURE_MESSAGE, ErrorKind.LAUNCH_FAILURE)
    assert env.page.goto_calls == []
    assert env.browser.close_count == 0
    assert task.history[-1] is TaskState.CLOSED
    assert env.manager.exited == 1


@pytest.mark.asyncio
async def test_extract_invalid_url(make_env):
    env = make_env()
    result = await VideoExtractor(playwright_factory=env.factory).extract(make_request(target_url="not-a-url"))
    assert isinstance(result, Failure)
    assert result.kind is ErrorKind.INVALID_REQUEST
    assert env.launch_calls == []


@pytest.mark.asyncio
async def test_listeners_attached_before_navigation(make_env):
    env = make_env()
    extractor = VideoExtractor(
        blocklist=DomainBlocklist(["doubleclick.net"]),
        playwright_factory=env.factory,
    )
    await extractor.extract(make_request(enable_adblock=True))
    events = env.page.events
    assert events.index("context:page") < events.index("goto")
    assert events.index("on:response") < events.index("goto")
    assert events.index("route") < events.index("goto")


@pytest.mark.asyncio
async def test_adblock_filters_blocked_media(make_env):
    env = make_env(FakePage(responses=[
        FakeResponse("https://cdn.example.com/movie.mp4", "video/mp4"),
        FakeResponse("https://video.doubleclick.net/preroll.mp4", "video/mp4"),
    ]))
    extractor = VideoExtractor(
        blocklist=DomainBlocklist(["doubleclick.net"]),
        playwright_factory=env.factory,
    )
    assert await extractor.extract(make_request(enable_adblock=True)) == Success(
        "https://cdn.example.com/movie.mp4"
    )


@pytest.mark.asyncio
async def test_adblock_disabled_ignores_blocklist(make_env):
    env = make_env(FakePage(responses=[
        FakeResponse("https://video.doubleclick.net/preroll.mp4", "video/mp4"),
    ]))
    extractor = VideoExtractor(
        blocklist=DomainBlocklist(["doubleclick.net"]),
        playwright_factory=env.factory,
    )
    assert await extractor.extract(make_request()) == Success("https://video.doubleclick.net/preroll.mp4")
    assert "route" not in env.page.events


@pytest.mark.asyncio
async def test_request_options_reach_browser(make_env):
    env = make_env(FakePage(iframes=["https://player.example.com/embed/9"], visible=["video"]))
    request = make_request(
        browser_engine="Firefox",
        headless=False,
        stealth=True,
        proxy="127.0.0.1:9050",
        user_agent="Agent/2.0",
        ignore_certificate_errors=False,
        allow_frame_navigation=True,
        required_selectors=["video"],
        brute_click=True,
    )
    await VideoExtractor(playwright_factory=env.factory).extract(request)

    launch = env.playwright.firefox.launch_calls[0]
    assert launch["headless"] is False
    assert launch["firefox_user_prefs"] == {"privacy.resistFingerprinting": True}
    assert launch["proxy"] == {"server": "http://127.0.0.1:9050"}
    assert env.browser.context_kwargs["user_agent"] == "Agent/2.0"
    assert env.browser.context_kwargs["ignore_https_errors"] is False
    assert [c["url"] for c in env.page.goto_calls] == [
        "https://example.com/watch",
        "https://player.example.com/embed/9",
    ]
    assert env.page.waited == ["video"]
    assert env.page.clicked == ["video"]
    assert "args" not in launch


@pytest.mark.asyncio
@pytest.mark.parametrize("ignore_errors", [True, False])
async def test_certificate_flag_reaches_chromium_switches(make_env, ignore_errors):
    env = make_env(FakePage())
    request = make_request(browser_engine="chromium", ignore_certificate_errors=ignore_errors)
    await VideoExtractor(playwright_factory=env.factory).extract(request)

    args = env.playwright.chromium.launch_calls[0]["args"]
    assert ("--ignore-certificate-errors" in args) is ignore_errors
    assert env.browser.context_kwargs["ignore_https_errors"] is ignore_errors


@pytest.mark.asyncio
@pytest.mark.parametrize("url", [
    "http://localhost:8080/watch",
    "http://intranet/video",
    "https://my_host.example.com/v",
])
async def test_extract_accepts_local_and_intranet_hosts(make_env, url):
    env = make_env(FakePage(responses=[
        FakeResponse("https://cdn.example.com/master.m3u8", "application/vnd.apple.mpegurl"),
    ]))
    result = await VideoExtractor(playwright_factory=env.factory).extract(make_request(target_url=url))
    assert result == Success("https://cdn.example.com/master.m3u8")
    assert env.page.goto_calls[0]["url"] == url


@pytest.mark.asyncio
async def test_extract_many_runs_independent_sessions(make_env):
    envs = [
        make_env(FakePage(responses=[FakeResponse(f"https://cdn.example.com/{i}.mp4", "video/mp4")]))
        for i in range(3)
    ]
    factories = iter(env.factory for env in envs)

    class _Extractor(VideoExtractor):
        def create_task(self, request):
            return ExtractionTask(request, self.blocklist, next(factories))

    requests = [make_request(target_url=f"https://example.com/{i}") for i in range(3)]
    results = await _Extractor().extract_many(requests, concurrency=2)

    assert results == [Success(f"https://cdn.example.com/{i}.mp4") for i in range(3)]
    assert [env.browser.close_count for env in envs] == [1, 1, 1]
    assert len({r.request_id for r in requests}) == 3


@pytest.mark.asyncio
async def test_cancelled_task_still_closes_browser(make_env):
    env = make_env()
    task = VideoExtractor(playwright_factory=env.factory).create_task(
        make_request(observation_window_ms=10_000)
    )
    running = asyncio.ensure_future(task.run())
    await asyncio.sleep(0.05)
    running.cancel()
    with pytest.raises(asyncio.CancelledError):
        await running
    assert env.browser.close_count == 1
