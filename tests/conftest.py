import pytest

from helpers import make_multi_question, make_quiz, make_single_question
from quiz_engine.core.engine_settings import EngineSettings
from quiz_engine.core.quiz_manager import QuizManager
from quiz_engine.core.services.quiz_data_service import InMemoryQuizDataService


@pytest.fixture
def data_service():
    service = InMemoryQuizDataService()
    service.add_quiz(make_quiz())
    service.add_question(make_multi_question())
    service.add_question(make_single_question())
    return service


@pytest.fixture
def settings():
    return EngineSettings(shuffle_seed=7)


@pytest.fixture
def manager(data_service, settings):
    return QuizManager(data_service, settings)
