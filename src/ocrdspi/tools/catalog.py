"""Built-in OCR-D tools.

Each tool is declared once as data: its ProcessorArgument type (names and
defaults as the processor expects them), its parameter table (UI fields and
binding rules) and its descriptor. JSON-described tools declare only their
keys; their parameters are loaded from the processor with
`ToolDescriptor.load()`.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, get_args

from pydantic import Field, Json, computed_field, field_validator

from ocrdspi.foundation.config import COLLECTION, CollectionKey, ExitPolicy
from ocrdspi.model import ArgumentKind, ParameterSpec, ProcessorArgument, non_negative, one_of

from .descriptor import Capabilities, ToolDescriptor, ToolMetadata

NEGATIVE = "The {argument} value {value} can not be negative."

Level = Literal["region", "cell", "line", "word", "glyph", "none"]
Engine = Literal["TESSERACT_ONLY", "LSTM_ONLY", "TESSERACT_LSTM_COMBINED", "DEFAULT"]
BinarizeMethod = Literal["none", "global", "otsu", "gauss-otsu", "ocropy"]
OperationLevel = Literal["page", "region", "line"]
TextEquivalenceLevel = Literal["line", "word", "glyph"]

LEVELS: tuple[str, ...] = get_args(Level)
ENGINES: tuple[str, ...] = get_args(Engine)
BINARIZE_METHODS: tuple[str, ...] = get_args(BinarizeMethod)
OPERATION_LEVELS: tuple[str, ...] = get_args(OperationLevel)
TEXT_EQUIVALENCE_LEVELS: tuple[str, ...] = get_args(TextEquivalenceLevel)


def _keys(name: str, processor: str, description: str) -> tuple[CollectionKey, CollectionKey]:
    return (CollectionKey(COLLECTION, f"{name}-id", processor),
            CollectionKey(COLLECTION, f"{name}-description", description))


def _dpi(v: int) -> int:
    return v if v >= 0 else -1


# ─────────────────────────────────────────────────────────────────────────────
# Tesserocr segment line
# ─────────────────────────────────────────────────────────────────────────────

class SegmentLineArgument(ProcessorArgument):
    dpi: int = -1
    overwrite_lines: bool = True
    padding: int = 0
    shrink_polygons: bool = False

    @field_validator("dpi")
    @classmethod
    def _normalize_dpi(cls, v: int) -> int:
        return _dpi(v)


SEGMENT_LINE_PARAMETERS = (
    ParameterSpec("dpi", ArgumentKind.INTEGER, label="dpi", step=1, minimum=-1, unit="pt",
                  description="pixel density in dots per inch (overrides any meta-data in the images); -1 to disable"),
    ParameterSpec("overwrite-lines", ArgumentKind.BOOLEAN, label="overwrite lines",
                  description="remove existing layout and text annotation below the TextRegion level"),
    ParameterSpec("padding", ArgumentKind.INTEGER, label="padding", step=1, minimum=0, unit="px",
                  check=non_negative, message=NEGATIVE,
                  description="extend detected line rectangles by this many (true) pixels"),
    ParameterSpec("shrink-polygons", ArgumentKind.BOOLEAN, label="shrink polygons",
                  description="annotate polygon coordinates shrunk to the hull of the contained symbols"),
)


# ─────────────────────────────────────────────────────────────────────────────
# Tesserocr recognize
# ─────────────────────────────────────────────────────────────────────────────

class RecognizeArgument(ProcessorArgument):
    model: str = "Fraktur_GT4HistOCR"
    auto_model: bool = False
    oem: Engine = "DEFAULT"
    dpi: int = -1
    padding: int = 0
    segmentation_level: Level = "word"
    textequiv_level: Level = "word"
    overwrite_segments: bool = False
    overwrite_text: bool = True
    shrink_polygons: bool = False
    block_polygons: bool = False
    find_tables: bool = True
    find_staves: bool = False
    sparse_text: bool = False
    raw_lines: bool = False
    char_whitelist: str | None = None
    char_blacklist: str | None = None
    char_unblacklist: str | None = None
    tesseract_parameters: Optional[Json[Any]] = None

    @field_validator("dpi")
    @classmethod
    def _normalize_dpi(cls, v: int) -> int:
        return _dpi(v)


RECOGNIZE_PARAMETERS = (
    ParameterSpec("models", ArgumentKind.SELECT, attribute="model", label="models", multiple=True, separator="+",
                  resource_model=True, resource_extension="traineddata",
                  description="tesseract model(s) to apply, combined in the order selected"),
    ParameterSpec("auto-model", ArgumentKind.BOOLEAN, label="auto model",
                  description="prefer the model performing best for each text line"),
    ParameterSpec("tesseract-engine", ArgumentKind.SELECT, attribute="oem", label="engine", options=ENGINES,
                  check=one_of(*ENGINES), description="tesseract OCR engine mode"),
    ParameterSpec("dpi", ArgumentKind.INTEGER, label="dpi", step=1, minimum=-1, unit="pt",
                  description="pixel density in dots per inch (overrides any meta-data in the images); -1 to disable"),
    ParameterSpec("padding", ArgumentKind.INTEGER, label="padding", step=1, minimum=0, unit="px",
                  check=non_negative, message=NEGATIVE,
                  description="extend detected cell rectangles by this many (true) pixels"),
    ParameterSpec("segmentation-level", ArgumentKind.SELECT, label="segmentation level", options=LEVELS,
                  check=one_of(*LEVELS), description="highest PAGE XML hierarchy level to remove and segment"),
    ParameterSpec("text-equiv-level", ArgumentKind.SELECT, attribute="textequiv_level", label="TextEquiv level",
                  options=LEVELS, check=one_of(*LEVELS), description="lowest PAGE XML hierarchy level to add text to"),
    ParameterSpec("overwrite-segments", ArgumentKind.BOOLEAN, label="overwrite segments"),
    ParameterSpec("overwrite-text", ArgumentKind.BOOLEAN, label="overwrite text"),
    ParameterSpec("shrink-polygons", ArgumentKind.BOOLEAN, label="shrink polygons"),
    ParameterSpec("block-polygons", ArgumentKind.BOOLEAN, label="block polygons"),
    ParameterSpec("find-tables", ArgumentKind.BOOLEAN, label="find tables"),
    ParameterSpec("find-staves", ArgumentKind.BOOLEAN, label="find staves"),
    ParameterSpec("sparse-text", ArgumentKind.BOOLEAN, label="sparse text"),
    ParameterSpec("raw-lines", ArgumentKind.BOOLEAN, label="raw lines"),
    ParameterSpec("character-white-list", ArgumentKind.STRING, attribute="char_whitelist", label="character whitelist"),
    ParameterSpec("character-black-list", ArgumentKind.STRING, attribute="char_blacklist", label="character blacklist"),
    ParameterSpec("character-unblack-list", ArgumentKind.STRING, attribute="char_unblacklist",
                  label="character unblacklist"),
    ParameterSpec("tesseract-parameters", ArgumentKind.STRING, label="tesseract parameters",
                  content_type="application/json", json_object=True,
                  description="dictionary of additional tesseract runtime variables"),
)


# ─────────────────────────────────────────────────────────────────────────────
# Calamari recognize
# ─────────────────────────────────────────────────────────────────────────────

class CalamariArgument(ProcessorArgument):
    checkpoint_dir: str = "fraktur_historical"
    voter: str = "confidence_voter_default_ctc"
    textequiv_level: TextEquivalenceLevel = "line"
    glyph_conf_cutoff: float = 0.001


CALAMARI_PARAMETERS = (
    ParameterSpec("model", ArgumentKind.SELECT, attribute="checkpoint_dir", label="model", resource_model=True,
                  description="calamari model folder"),
    ParameterSpec("voter", ArgumentKind.STRING, label="voter", description="voting algorithm of the model ensemble"),
    ParameterSpec("level-text-equivalence", ArgumentKind.SELECT, attribute="textequiv_level",
                  label="level of text equivalence", options=TEXT_EQUIVALENCE_LEVELS,
                  check=one_of(*TEXT_EQUIVALENCE_LEVELS)),
    ParameterSpec("glyph-confidence-cutoff", ArgumentKind.DECIMAL, attribute="glyph_conf_cutoff",
                  label="glyph confidence cutoff", check=non_negative, message=NEGATIVE,
                  description="only include glyph alternatives with confidences above this threshold"),
)


# ─────────────────────────────────────────────────────────────────────────────
# CIS ocropy binarize
# ─────────────────────────────────────────────────────────────────────────────

class BinarizeArgument(ProcessorArgument):
    method: BinarizeMethod = "ocropy"
    threshold_percent: int = Field(default=50, ge=0, le=100, exclude=True)
    grayscale: bool = False
    maxskew: float = 0.0
    noise_maxsize: int = 0
    level_of_operation: OperationLevel = Field(default="page", alias="level-of-operation")

    @computed_field
    @property
    def threshold(self) -> float:
        return self.threshold_percent / 100


BINARIZE_PARAMETERS = (
    ParameterSpec("method", ArgumentKind.SELECT, label="method", options=BINARIZE_METHODS,
                  check=one_of(*BINARIZE_METHODS), description="binarization method"),
    ParameterSpec("threshold", ArgumentKind.INTEGER, attribute="threshold_percent", label="threshold",
                  step=1, minimum=0, maximum=100, unit="%",
                  check=lambda v: isinstance(v, int) and 0 <= v <= 100,
                  message="The {argument} value {value} is out of range [0..100].",
                  description="black/white threshold to apply after normalization"),
    ParameterSpec("grayscale", ArgumentKind.BOOLEAN, label="grayscale",
                  description="produce grayscale-normalized instead of thresholded image"),
    ParameterSpec("maximum-skewing", ArgumentKind.DECIMAL, attribute="maxskew", label="maximum skewing",
                  step=0.1, minimum=0, unit="°", check=non_negative, message=NEGATIVE,
                  description="modulus of maximum skewing angle (in degrees) to detect; 0 to disable"),
    ParameterSpec("noise-maximum-size", ArgumentKind.INTEGER, attribute="noise_maxsize", label="noise maximum size",
                  step=1, minimum=0, unit="px", check=non_negative, message=NEGATIVE,
                  description="maximum pixel number for connected components to regard as noise; 0 to disable"),
    ParameterSpec("level-of-operation", ArgumentKind.SELECT, label="level of operation", options=OPERATION_LEVELS,
                  check=one_of(*OPERATION_LEVELS), description="PAGE XML hierarchy level to operate on"),
)


# ─────────────────────────────────────────────────────────────────────────────
# Catalog
# ─────────────────────────────────────────────────────────────────────────────

def _tool(name: str, label: str, processor: str, description: str, category: str, index: int,
          parameters: tuple[ParameterSpec, ...] = (), argument_type: type[ProcessorArgument] = ProcessorArgument,
          **options: Any) -> ToolDescriptor:
    processor_key, description_key = _keys(name, processor, description)
    return ToolDescriptor(
        ToolMetadata(name=name, label=label, description=description, category=category, index=index),
        processor_key, parameters, argument_type,
        description_key=description_key, exit_policy=ExitPolicy.INTERRUPT, **options,
    )


def _json_tool(name: str, label: str, processor: str, description: str, category: str, index: int,
               model_argument: str | None = None) -> ToolDescriptor:
    return _tool(f"{name}-json", label, processor, description, category, index,
                 capabilities=Capabilities(json_mode=True, uses_resources=model_argument is not None),
                 model_argument=model_argument)


def builtin_tools() -> list[ToolDescriptor]:
    """Fresh descriptors of all built-in tools, ordered by category and index."""
    return [
        _tool("cis-ocropy-binarize", "CIS ocropy binarize", "ocrd-cis-ocropy-binarize",
              "ocr-d cis ocropy binarize processor", "preprocessing", 100, BINARIZE_PARAMETERS, BinarizeArgument),
        _json_tool("tesserocr-deskew", "Tesserocr deskew", "ocrd-tesserocr-deskew",
                   "ocr-d Tesserocr deskew processor", "preprocessing", 1100),
        _json_tool("cis-ocropy-deskew", "CIS ocropy deskew", "ocrd-cis-ocropy-deskew",
                   "ocr-d cis ocropy deskew processor", "preprocessing", 1100),
        _json_tool("sbb-binarize", "SBB binarize", "ocrd-sbb-binarize",
                   "ocr-d sbb binarize processor", "preprocessing", 1500, model_argument="model"),
        _tool("tesserocr-segment-line", "Tesserocr segment line", "ocrd-tesserocr-segment-line",
              "ocr-d tesserocr segment line processor", "olr", 150, SEGMENT_LINE_PARAMETERS, SegmentLineArgument),
        _json_tool("cis-ocropy-segment", "CIS ocropy segment", "ocrd-cis-ocropy-segment",
                   "ocr-d cis ocropy segment processor", "olr", 1300),
        _tool("calamari-recognize", "Calamari recognize", "ocrd-calamari-recognize",
              "ocr-d calamari recognize processor", "ocr", 100, CALAMARI_PARAMETERS, CalamariArgument,
              capabilities=Capabilities(uses_resources=True), default_model="fraktur_historical"),
        _tool("tesserocr-recognize", "Tesserocr recognize", "ocrd-tesserocr-recognize",
              "ocr-d tesserocr recognize processor", "ocr", 200, RECOGNIZE_PARAMETERS, RecognizeArgument,
              capabilities=Capabilities(uses_resources=True), default_model="Fraktur_GT4HistOCR"),
    ]
