"""
Model Access Package

Provider-agnostic access to the generative model used by the study pipeline:
  - Gemini   (gemini-1.5-flash, default)
  - OpenAI   (gpt-4o-mini)

Public API::

    from studybuddy.llm import ModelDriver, StudyAssistant, build_generator

    driver    = ModelDriver.from_settings(build_generator())
    assistant = StudyAssistant(driver)
    guide     = await assistant.simplify_document(text, topic, "beginner")
"""

from studybuddy.llm.assistant import StudyAssistant
from studybuddy.llm.base import TextGenerator
from studybuddy.llm.driver import ModelDriver, merge_results, process_sequential
from studybuddy.llm.parsing import extract_json_array
from studybuddy.llm.providers import ChatModelGenerator, Provider, build_chat_model, build_generator

__all__ = [
    "ChatModelGenerator",
    "ModelDriver",
    "Provider",
    "StudyAssistant",
    "TextGenerator",
    "build_chat_model",
    "build_generator",
    "extract_json_array",
    "merge_results",
    "process_sequential",
]
