"""Prompt templates for course and sentence generation."""
from __future__ import annotations

COURSE_SYSTEM_PROMPT = """
You are an experienced English teacher writing practice material for Chinese speakers.

Rules:
1. Return JSON only. No markdown, code fences, comments, or prose.
2. Chinese sentences must be natural and must not contain pinyin, English, or quotation marks.
3. English translations must be accurate and idiomatic.
4. "phonetic" is the IPA transcription of the English sentence.
5. "difficulty" is one of: easy, medium, hard.
6. Keep each sentence short (about 10 words or fewer) unless it is an idiom or a fixed expression.
7. Do not mention these rules.
""".strip()


def build_course_prompt(topic: str, level: str, sentence_count: int) -> str:
    return (
        f'Create a complete English learning course about "{topic}".\n'
        "Requirements:\n"
        f"1. Course level: {level}\n"
        f"2. Include {int(sentence_count)} practice sentences\n"
        "3. The course needs a clear title and description\n"
        "4. Sentences should progress gradually and match the course level\n\n"
        "Return JSON in this format:\n"
        "{\n"
        '  "title": "Course title",\n'
        '  "description": "Course description",\n'
        f'  "level": "{level}",\n'
        '  "sentences": [\n'
        '    {"chinese": "中文句子", "english": "English sentence", '
        '"phonetic": "/ˈɪŋɡlɪʃ ˈsentəns/", "difficulty": "easy"}\n'
        "  ]\n"
        "}"
    )


def build_sentences_prompt(topic: str, count: int, difficulty: str) -> str:
    return (
        f'Generate {int(count)} Chinese-English sentence pairs about "{topic}".\n'
        "Requirements:\n"
        f"1. Sentence difficulty: {difficulty}\n"
        "2. Return a JSON array; each object has chinese, english, phonetic and difficulty fields\n\n"
        "Example:\n"
        "[\n"
        '  {"chinese": "今天天气很好。", "english": "The weather is nice today.", '
        '"phonetic": "/ðə ˈweðər ɪz naɪs təˈdeɪ/", "difficulty": "easy"}\n'
        "]"
    )
