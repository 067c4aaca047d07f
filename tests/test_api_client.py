import json
import unittest
from unittest.mock import patch

import httpx

from practice_coach import main
from practice_coach.api_client import PracticeApiClient
from practice_coach.capture import CaptureController
from practice_coach.coaches.openai_coach import OpenAICoach
from practice_coach.errors import MalformedFeedback, TranscriptionFailed, UpstreamUnavailable
from practice_coach.models import AudioArtifact, Step
from practice_coach.session import PracticeSession
from practice_coach.transcriber import MOCK_TRANSCRIPT, OpenAITranscriber

from fakes import FakeDeviceFactory, FakeTranscriber, make_catalog, never

ARTIFACT = AudioArtifact(data=b"RIFF....WAVE", container="wav")
ARGS = dict(
    question="Tell me about a project you led.",
    answer_text="I led a project",
    role="Frontend Engineer",
    time_limit_seconds=60,
    remaining_seconds=30,
)


class ApiClientAgainstAppTests(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self) -> None:
        patcher_t = patch.object(main, "transcriber", OpenAITranscriber(api_key=""))
        patcher_c = patch.object(main, "coach", OpenAICoach(api_key=""))
        patcher_t.start()
        patcher_c.start()
        self.addCleanup(patcher_t.stop)
        self.addCleanup(patcher_c.stop)
        self.client = PracticeApiClient(base_url="http://testserver", transport=httpx.ASGITransport(app=main.app))

    async def asyncTearDown(self) -> None:
        await self.client.aclose()

    async def test_questions(self) -> None:
        questions = await self.client.questions()
        self.assertEqual(questions[0].id, "fe-1")
        self.assertEqual(len(questions), len(main.catalog))

    async def test_transcribe_and_analyze_without_key(self) -> None:
        self.assertEqual(await self.client.transcribe(ARTIFACT), MOCK_TRANSCRIPT)
        result = await self.client.analyze(**ARGS)
        self.assertEqual(result.scores.to_dict(), {"communication": 82, "structure": 75, "relevance": 88, "timing": 95})

    async def test_transcription_error_keeps_backend_reason(self) -> None:
        with patch.object(main, "transcriber", FakeTranscriber(error=TranscriptionFailed("Invalid file format.", 400))):
            with self.assertRaises(TranscriptionFailed) as ctx:
                await self.client.transcribe(ARTIFACT)
        self.assertEqual(ctx.exception.reason, "Invalid file format.")
        self.assertEqual(ctx.exception.status_code, 400)

    async def test_health(self) -> None:
        self.assertEqual((await self.client.health())["status"], "ok")

    async def test_voice_session_end_to_end(self) -> None:
        factory = FakeDeviceFactory()
        session = PracticeSession(
            make_catalog(), self.client, self.client, CaptureController(device_factory=factory), sleep=never
        )
        async with session:
            session.select_question(session.filtered_questions()[0])
            session.start_practice()
            await session.start_capture()
            factory.last.emit(b"\x01\x00\x02\x00")
            await session.stop_capture()

            snap = session.snapshot()
            self.assertEqual(snap.step, Step.ANALYSIS)
            self.assertEqual(snap.answer_text, MOCK_TRANSCRIPT)
            self.assertEqual(snap.feedback.scores.timing, 95)


class ApiClientFailureTests(unittest.IsolatedAsyncioTestCase):
    def client_for(self, handler) -> PracticeApiClient:
        return PracticeApiClient(base_url="http://backend.test", transport=httpx.MockTransport(handler))

    async def test_analyze_error_status_is_upstream_unavailable(self) -> None:
        def handler(request):
            return httpx.Response(500, json={"feedback": {"explanation": "Error during AI analysis: down"}})

        async with self.client_for(handler) as client:
            with self.assertRaises(UpstreamUnavailable) as ctx:
                await client.analyze(**ARGS)
        self.assertEqual(ctx.exception.status_code, 500)
        self.assertEqual(ctx.exception.reason, "Error during AI analysis: down")

    async def test_analyze_payload_and_malformed_response(self) -> None:
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.read())
            return httpx.Response(200, json={"feedback": {"mistakes": "not a list"}})

        async with self.client_for(handler) as client:
            with self.assertRaises(MalformedFeedback):
                await client.analyze(**ARGS)
        self.assertEqual(seen["body"], {
            "question": ARGS["question"],
            "answer": "I led a project",
            "role": "Frontend Engineer",
            "timeLimit": 60,
            "remainingTime": 30,
        })

    async def test_unreachable_backend(self) -> None:
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with self.client_for(handler) as client:
            with self.assertRaises(UpstreamUnavailable):
                await client.questions()
            with self.assertRaises(UpstreamUnavailable):
                await client.transcribe(ARTIFACT)

    async def test_empty_transcript_is_a_failure(self) -> None:
        async with self.client_for(lambda request: httpx.Response(200, json={"text": ""})) as client:
            with self.assertRaises(TranscriptionFailed):
                await client.transcribe(ARTIFACT)


if __name__ == "__main__":
    unittest.main()
