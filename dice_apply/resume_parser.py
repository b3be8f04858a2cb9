"""Read CV text and extract skill keywords from it.

Supports PDF (via pdftotext or pypdf), DOCX (via stdlib zipfile) and TXT.
Keywords come from the Groq LLM; without an API key there are none and
relevance scoring is skipped for the whole run.
"""
from __future__ import annotations

import re
import shutil
import subprocess
import zipfile
from pathlib import Path
from typing import Callable
from xml.etree import ElementTree

from openai import AsyncOpenAI
from pypdf import PdfReader

from dice_apply.log import get_logger
from dice_apply.retry import retry

log = get_logger(__name__)

# ── Text extraction ──────────────────────────────────────────────────────

_WORD_NS = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"

# (pattern, replacement) pairs that split glued-together PDF words
_SPACING_FIXES: tuple[tuple[str, str], ...] = (
    (r"([a-z])([A-Z])", r"\1 \2"),
    (r"([a-zA-Z])(\d)", r"\1 \2"),
    (r"(\d)([a-zA-Z])", r"\1 \2"),
    (r"([.!?,;:])([A-Za-z])", r"\1 \2"),
)
_MIN_SPACE_RATIO = 0.08


def _fix_spacing(text: str) -> str:
    """Split merged words when a PDF page comes back with too few spaces."""
    if len(text) < 50 or text.count(" ") / len(text) > _MIN_SPACE_RATIO:
        return text
    log.debug("PDF text has almost no spaces, re-splitting words")
    for pattern, repl in _SPACING_FIXES:
        text = re.sub(pattern, repl, text)
    return text


def _pdftotext(path: Path) -> str | None:
    if not shutil.which("pdftotext"):
        return None
    proc = subprocess.run(
        ["pdftotext", "-layout", str(path), "-"], capture_output=True, text=True, timeout=30,
    )
    return proc.stdout if proc.returncode == 0 and proc.stdout.strip() else None


def _extract_pdf(path: Path) -> str:
    # pdftotext keeps word spacing better than pypdf
    text = _pdftotext(path)
    if text is not None:
        return text
    reader = PdfReader(str(path))
    return "\n".join(_fix_spacing(page.extract_text() or "") for page in reader.pages)


def _extract_docx(path: Path) -> str:
    with zipfile.ZipFile(path) as zf, zf.open("word/document.xml") as f:
        body = ElementTree.parse(f)
    paragraphs = ("".join(t.text or "" for t in p.iter(f"{_WORD_NS}t")) for p in body.iter(f"{_WORD_NS}p"))
    return "\n".join(p for p in paragraphs if p)


def _extract_txt(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="ignore")


_READERS: dict[str, Callable[[Path], str]] = {
    ".pdf": _extract_pdf,
    ".docx": _extract_docx,
    ".txt": _extract_txt,
}


def extract_text(path: Path) -> str:
    """Plain text of a PDF, DOCX or TXT CV."""
    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise ValueError(f"Unsupported CV format: {path.suffix}")
    return reader(path)


def read_text(path: Path | None) -> str | None:
    """CV text, or None when the file is missing, unsupported or unreadable."""
    if path is None:
        log.warning("No CV configured — set CV_PATH or put a file in CV/")
        return None
    if not path.exists():
        log.error("CV file not found at %s", path)
        return None
    try:
        text = extract_text(path)
    except Exception as exc:
        log.error("Error reading CV %s: %s", path.name, exc)
        return None
    if not text.strip():
        log.warning("CV %s contains no extractable text", path.name)
        return None
    return text


# ── Keyword extraction ───────────────────────────────────────────────────

_KEYWORD_PROMPT = """\
Extract a list of highly relevant technical skills and job role keywords from the
following CV text. Focus on action verbs, technologies, methodologies, and common
industry terms. List each skill on a new line. If no relevant skills are found,
respond with "No relevant skills found".

CV Text:
```
{cv_text}
```

Keywords:
"""

_NO_SKILLS = "no relevant skills found"
_BULLET_RE = re.compile(r"^\s*(?:[-*•]|\d+[.)])\s*")


@retry(max_attempts=2, base_delay=2.0, retryable=(Exception,))
async def _llm_keywords(client: AsyncOpenAI, model: str, cv_text: str) -> str:
    resp = await client.chat.completions.create(
        model=model,
        messages=[{"role": "user", "content": _KEYWORD_PROMPT.format(cv_text=cv_text[:8000])}],
        max_tokens=600,
        temperature=0.1,
    )
    return (resp.choices[0].message.content or "").strip()


def parse_keywords(reply: str) -> list[str]:
    """One keyword per line; list markers stripped, duplicates and 1-char noise dropped."""
    if not reply or reply.strip().lower().rstrip(".") == _NO_SKILLS:
        return []
    keywords = [_BULLET_RE.sub("", line).strip() for line in reply.splitlines()]
    return list(dict.fromkeys(k for k in keywords if len(k) > 1))


async def extract_keywords(cv_text: str | None, client: AsyncOpenAI | None, model: str) -> list[str]:
    """Skill keywords from CV text; empty on missing input, no signal, or API failure."""
    if client is None or not cv_text:
        log.warning("Groq client not configured or CV text empty — no CV keywords")
        return []
    try:
        log.info("Extracting CV keywords with LLM (%s)", model)
        reply = await _llm_keywords(client, model, cv_text)
    except Exception as exc:
        log.error("Groq API error during keyword extraction: %s", exc)
        return []

    keywords = parse_keywords(reply)
    if keywords:
        log.info("Extracted %d keywords from CV", len(keywords))
    else:
        log.info("No relevant skills found in CV")
    return keywords
