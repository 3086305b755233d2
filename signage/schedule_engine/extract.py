"""Page text extraction for uploaded plans: embedded PDF text first, OCR second."""
from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .schedule import PlanPage

logger = logging.getLogger(__name__)

DEFAULT_PDF_BACKENDS = [
    "pypdf",
    "pdfminer",
    "pikepdf+pypdf",
    "pikepdf+pdfminer",
]

DEFAULT_MIN_PDF_CHARS = 20
DEFAULT_OCR_LANG = "eng"

IMAGE_EXTENSIONS = {
    ".png",
    ".jpg",
    ".jpeg",
    ".tif",
    ".tiff",
    ".bmp",
    ".gif",
    ".webp",
}

SUPPORTED_EXTENSIONS = {".pdf", ".txt", *IMAGE_EXTENSIONS}


def _resolve_backend_order(prefer_backends: Iterable[str] | None) -> list[str]:
    if prefer_backends:
        order = [backend.strip() for backend in prefer_backends if backend and backend.strip()]
    else:
        env_value = os.environ.get("SIGNAGE_PDF_BACKENDS")
        if env_value:
            order = [backend.strip() for backend in env_value.split(",") if backend.strip()]
        else:
            order = list(DEFAULT_PDF_BACKENDS)
    return _dedupe(order) or list(DEFAULT_PDF_BACKENDS)


def _dedupe(sequence: Iterable[str]) -> list[str]:
    seen = set()
    result: list[str] = []
    for item in sequence:
        if item and item not in seen:
            result.append(item)
            seen.add(item)
    return result


def _is_xref_issue(message: str | None) -> bool:
    if not message:
        return False
    lowered = message.lower()
    return "xref" in lowered or "cross" in lowered


def resolve_min_pdf_chars(value: int | None) -> int:
    if value is not None:
        return max(value, 0)
    env_value = os.environ.get("SIGNAGE_MIN_PDF_CHARS")
    if env_value:
        try:
            return max(int(env_value), 0)
        except ValueError:
            logger.debug("Invalid SIGNAGE_MIN_PDF_CHARS value: %s", env_value)
    return DEFAULT_MIN_PDF_CHARS


def resolve_ocr_lang(value: str | None) -> str:
    if value:
        return value
    return os.environ.get("SIGNAGE_OCR_LANG") or DEFAULT_OCR_LANG


def _char_count(pages: list[str]) -> int:
    return sum(len(page.strip()) for page in pages)


def extract_pdf_text(
    path: str | Path,
    *,
    min_chars: int = DEFAULT_MIN_PDF_CHARS,
    prefer_backends: Iterable[str] | None = None,
) -> tuple[list[str], dict[str, Any]]:
    """Extract embedded text per page using a cascading set of backends.

    Returns the page texts of the best attempt (empty list when no backend
    produced at least ``min_chars`` characters) and a metadata dict.
    """

    pdf_path = Path(path)
    try:
        byte_size = pdf_path.stat().st_size
    except OSError:
        byte_size = 0

    backend_order = _resolve_backend_order(prefer_backends)
    best_pages: list[str] = []
    best_chars = 0
    best_backend = "none"
    best_repaired = False
    best_warnings: list[str] = []
    last_error: str | None = None
    all_warnings: list[str] = []
    any_repaired = False
    needs_repair_hint = False

    with tempfile.TemporaryDirectory(prefix="signage_pdf_") as tmp_dir:
        repair_info: tuple[Path, list[str]] | None = None
        repair_error: str | None = None

        for backend_name in backend_order:
            use_repair = backend_name.startswith("pikepdf+")
            base_backend = backend_name.split("+", 1)[-1] if use_repair else backend_name
            attempt_warnings: list[str] = []
            attempt_error: str | None = None
            repaired = False
            target_path = pdf_path

            if use_repair:
                if repair_info is None and repair_error is None:
                    try:
                        repair_info = _repair_pdf_with_pikepdf(pdf_path, Path(tmp_dir))
                    except RuntimeError as exc:
                        repair_error = str(exc)
                        logger.debug("pikepdf repair failed for %s: %s", pdf_path, exc)
                if repair_info is None:
                    attempt_error = repair_error or "pikepdf repair unavailable"
                    all_warnings.append(f"{backend_name}: pikepdf repair failed: {attempt_error}")
                    last_error = attempt_error
                    continue
                target_path, repair_warnings = repair_info
                attempt_warnings.extend(repair_warnings)
                repaired = True
                any_repaired = True

            try:
                pages, backend_warnings = _extract_with_backend(base_backend, target_path)
                attempt_warnings.extend(backend_warnings)
            except RuntimeError as exc:
                attempt_error = str(exc)
                if _is_xref_issue(attempt_error):
                    needs_repair_hint = True
                logger.debug("PDF backend %s failed for %s: %s", base_backend, pdf_path, exc)
                pages = []

            chars = _char_count(pages)
            if chars:
                if chars > best_chars:
                    best_chars = chars
                    best_pages = pages
                    best_backend = backend_name
                    best_repaired = repaired
                    best_warnings = list(attempt_warnings)
                if chars < min_chars:
                    attempt_warnings.append(
                        f"extracted text shorter than min_chars ({chars} < {min_chars})"
                    )
            else:
                attempt_warnings.append("extracted text empty")

            if any(_is_xref_issue(message) for message in attempt_warnings):
                needs_repair_hint = True
            if attempt_error:
                last_error = attempt_error

            all_warnings.extend(f"{backend_name}: {warning}" for warning in attempt_warnings)

            if chars >= min_chars and chars and not needs_repair_hint and not attempt_error:
                break

    if best_chars >= min_chars and best_chars:
        meta = {
            "backend": best_backend,
            "bytes": byte_size,
            "chars": best_chars,
            "pages": len(best_pages),
            "warnings": _dedupe(best_warnings),
            "repaired": best_repaired,
            "error": None,
        }
        return best_pages, meta

    warnings_out = _dedupe(all_warnings)
    if best_chars and best_chars < min_chars:
        warnings_out.append(f"best text shorter than min_chars ({best_chars} < {min_chars})")
    meta = {
        "backend": "none",
        "bytes": byte_size,
        "chars": best_chars,
        "pages": 0,
        "warnings": _dedupe(warnings_out),
        "repaired": any_repaired,
        "error": last_error,
    }
    return [], meta


def _extract_with_backend(backend: str, path: Path) -> tuple[list[str], list[str]]:
    if backend == "pypdf":
        return _extract_with_pypdf(path)
    if backend == "pdfminer":
        return _extract_with_pdfminer(path)
    raise RuntimeError(f"unknown backend: {backend}")


def _extract_with_pypdf(path: Path) -> tuple[list[str], list[str]]:
    warnings: list[str] = []
    try:
        from pypdf import PdfReader
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pypdf is not installed") from exc

    try:
        reader = PdfReader(str(path))
        pages = list(reader.pages)
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc

    texts: list[str] = []
    for page_number, page in enumerate(pages, start=1):
        try:
            text = page.extract_text() or ""
        except Exception as exc:  # pragma: no cover - depends on document
            warnings.append(f"page {page_number}: {exc}")
            text = ""
        texts.append(text)
    return texts, warnings


def _extract_with_pdfminer(path: Path) -> tuple[list[str], list[str]]:
    try:
        from pdfminer.high_level import extract_text
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pdfminer.six is not installed") from exc

    try:
        text = extract_text(str(path)) or ""
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc
    pages = text.split("\f")
    # pdfminer terminates every page with a form feed
    if pages and not pages[-1].strip():
        pages.pop()
    return pages, []


def _repair_pdf_with_pikepdf(source: Path, temp_dir: Path) -> tuple[Path, list[str]]:
    try:
        from pikepdf import Pdf  # type: ignore[attr-defined]
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pikepdf is not installed") from exc

    repaired_path = Path(temp_dir) / "repaired.pdf"
    warnings: list[str] = ["pikepdf repair applied"]
    try:
        with Pdf.open(str(source)) as pdf:
            pdf.save(str(repaired_path))
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc
    return repaired_path, warnings


def ocr_image(image: Any, lang: str = DEFAULT_OCR_LANG) -> str:
    try:
        import pytesseract
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pytesseract is not installed") from exc

    try:
        return pytesseract.image_to_string(image, lang=lang) or ""
    except Exception as exc:  # pragma: no cover - tesseract binary errors vary
        raise RuntimeError(str(exc)) from exc


def ocr_image_file(path: Path, lang: str = DEFAULT_OCR_LANG) -> str:
    try:
        from PIL import Image
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("Pillow is not installed") from exc

    try:
        with Image.open(path) as image:
            return ocr_image(image.convert("RGB"), lang)
    except OSError as exc:
        raise RuntimeError(str(exc)) from exc


def pdf_page_count(path: Path) -> int:
    try:
        from pypdf import PdfReader
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pypdf is not installed") from exc

    try:
        return len(PdfReader(str(path)).pages)
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc


def ocr_pdf_page(path: Path, page_index: int, lang: str = DEFAULT_OCR_LANG) -> str:
    """OCR the largest image embedded on a scanned PDF page."""
    try:
        from pypdf import PdfReader
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pypdf is not installed") from exc

    try:
        page = PdfReader(str(path)).pages[page_index]
        images = [entry.image for entry in page.images if entry.image is not None]
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc
    if not images:
        return ""
    largest = max(images, key=lambda image: image.width * image.height)
    return ocr_image(largest.convert("RGB"), lang)


def extract_plan_pages(
    path: str | Path,
    *,
    min_pdf_chars: int | None = None,
    pdf_backends: Iterable[str] | None = None,
    ocr_lang: str | None = None,
    use_ocr: bool = True,
) -> tuple[list[PlanPage], dict[str, Any]]:
    """Split an uploaded plan into pages with their best available text."""
    plan_path = Path(path)
    suffix = plan_path.suffix.lower()
    lang = resolve_ocr_lang(ocr_lang)
    meta: dict[str, Any] = {"file": plan_path.name, "warnings": [], "error": None}

    if suffix == ".txt":
        raw = plan_path.read_text(encoding="utf-8", errors="ignore")
        texts = raw.split("\f")
        if len(texts) > 1 and not texts[-1].strip():
            texts.pop()
        return _pages(plan_path, texts, "text"), meta

    if suffix in IMAGE_EXTENSIONS:
        if not use_ocr:
            return _pages(plan_path, [""], ""), meta
        try:
            text = ocr_image_file(plan_path, lang)
        except RuntimeError as exc:
            logger.warning("OCR failed for %s: %s", plan_path, exc)
            meta["error"] = str(exc)
            text = ""
        return _pages(plan_path, [text], "ocr" if text.strip() else ""), meta

    if suffix != ".pdf":
        logger.debug("Unsupported plan file: %s", plan_path)
        meta["error"] = f"unsupported file type: {suffix or plan_path.name}"
        return [], meta

    effective_min = resolve_min_pdf_chars(min_pdf_chars)
    texts, pdf_meta = extract_pdf_text(
        plan_path, min_chars=effective_min, prefer_backends=pdf_backends
    )
    meta.update(pdf_meta)
    sources = ["pdf" if text.strip() else "" for text in texts]
    if not texts:
        try:
            texts = [""] * pdf_page_count(plan_path)
        except RuntimeError as exc:
            meta["error"] = meta.get("error") or str(exc)
            return [], meta
        sources = [""] * len(texts)

    if use_ocr:
        for index, text in enumerate(texts):
            if text.strip():
                continue
            try:
                recognised = ocr_pdf_page(plan_path, index, lang)
            except RuntimeError as exc:
                meta["warnings"].append(f"page {index + 1}: ocr failed: {exc}")
                continue
            if recognised.strip():
                texts[index] = recognised
                sources[index] = "ocr"

    pages = _pages(plan_path, texts, "")
    for page, source in zip(pages, sources):
        page.text_source = source
    return pages, meta


def _pages(path: Path, texts: list[str], text_source: str) -> list[PlanPage]:
    count = len(texts)
    pages = []
    for number, text in enumerate(texts, start=1):
        name = path.name if count == 1 else f"{path.name} p{number}"
        pages.append(
            PlanPage(
                name=name,
                source_file=str(path),
                page_number=number,
                text=text,
                text_source=text_source if text.strip() else "",
            )
        )
    return pages
