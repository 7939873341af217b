"""
Formula complexity analyzer.

Best-effort, text-based static analysis of PowerFx-style expressions and
Mendix-style microflow XML. Never raises; unparsable input simply yields
low or zero-valued fields.
"""

import math
import re
from enum import Enum
from typing import List, Optional, Union

from changerisk.core.logging import get_logger
from changerisk.schemas.assessment import FormulaAnalysisResult, FormulaRisk
from changerisk.services.risk_assessment.catalogs import (
    INTERNAL_URL_MARKERS,
    MENDIX_UNSAFE_ACTIONS,
    POWERAPPS_EXTERNAL_CONNECTORS,
    POWERAPPS_UNSAFE_FUNCTIONS,
    action_risk,
    function_risk,
)
from changerisk.services.risk_assessment.numeric import clamp, js_round

logger = get_logger(__name__)

_IDENTIFIER = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*")
_FUNCTION_CALL = re.compile(r"[a-zA-Z_][a-zA-Z0-9_]*\s*\(")
_CONCATENATION = (
    re.compile(r"[\"'][^\"']*[\"']\s*&\s*[a-zA-Z_]"),
    re.compile(r"[\"'][^\"']*[\"']\s*\+\s*[a-zA-Z_]"),
    re.compile(r"Concatenate\s*\(", re.IGNORECASE),
)

_ACTION = re.compile(r"<action[^>]*type=\"([^\"]+)\"", re.IGNORECASE)
_URL = re.compile(r"<url>([^<]+)</url>")
_OPEN_TAG = re.compile(r"<[^/][^>]*>")

# Fixed token count used for microflows, which have no meaningful token stream
MICROFLOW_NOMINAL_TOKENS = 100


class FormulaDialect(str, Enum):
    """Supported embedded-logic dialects."""

    EXPRESSION = "powerapps"
    WORKFLOW_XML = "mendix"


def calculate_complexity_score(
    function_count: int, nesting_depth: int, token_count: int
) -> int:
    """
    Complexity score in [0, 100]:
    calls (capped at 30) + depth beyond 4 + log-scaled length (capped at 20).
    """
    score = min(function_count * 3, 30)
    if nesting_depth > 4:
        score += (nesting_depth - 4) * 8
    score += min(math.log(token_count + 1) * 5, 20)
    return clamp(js_round(score))


def calculate_nesting_depth(code: str) -> int:
    """Maximum running depth of a parenthesis counter."""
    max_depth = 0
    depth = 0
    for char in code:
        if char == "(":
            depth += 1
            max_depth = max(max_depth, depth)
        elif char == ")":
            depth -= 1
    return max_depth


def calculate_xml_structural_depth(xml: str) -> int:
    """
    Structural complexity proxy for microflow XML.

    Counts non-self-closing opening tags. Closing tags are never subtracted,
    so this is a size measure rather than a true nesting depth.
    """
    # TODO: confirm with the workflow owners whether true nesting depth was intended
    return sum(1 for tag in _OPEN_TAG.findall(xml) if "/>" not in tag)


def detect_string_concatenation(formula: str) -> bool:
    """Quoted literal joined to an identifier with & or +, or Concatenate()."""
    return any(pattern.search(formula) for pattern in _CONCATENATION)


def _line_of(text: str, offset: int) -> int:
    return text.count("\n", 0, offset) + 1


class FormulaAnalyzer:
    """Static analyzer for formula and microflow source."""

    def analyze_formula(
        self, code: Optional[str], dialect: Union[FormulaDialect, str]
    ) -> FormulaAnalysisResult:
        """
        Analyze formula complexity and risks.

        Args:
            code: Formula or microflow source; None or empty yields the empty result.
            dialect: FormulaDialect or its value ("powerapps" / "mendix").

        Returns:
            FormulaAnalysisResult, never raises.
        """
        if not code:
            return FormulaAnalysisResult.empty()

        try:
            dialect = FormulaDialect(dialect)
        except ValueError:
            logger.warning("Unknown formula dialect %r, skipping analysis", dialect)
            return FormulaAnalysisResult.empty()

        logger.info("Analyzing %s formula (%d chars)", dialect.value, len(code))

        try:
            if dialect is FormulaDialect.EXPRESSION:
                return self._analyze_power_fx(code)
            return self._analyze_microflow(code)
        except Exception as e:
            logger.error("Formula analysis failed: %s", e, exc_info=True)
            return FormulaAnalysisResult.empty()

    def _analyze_power_fx(self, formula: str) -> FormulaAnalysisResult:
        risks: List[FormulaRisk] = []
        unsafe_functions: List[str] = []
        external_connectors: List[str] = []

        tokens = _IDENTIFIER.findall(formula)
        function_calls = _FUNCTION_CALL.findall(formula)
        nesting_depth = calculate_nesting_depth(formula)

        for func in POWERAPPS_UNSAFE_FUNCTIONS:
            match = re.search(rf"\b{func}\s*\(", formula, re.IGNORECASE)
            if match:
                unsafe_functions.append(func)
                entry = function_risk(func)
                risks.append(
                    FormulaRisk(
                        type="unsafe_function",
                        severity=entry.severity,
                        function=func,
                        description=entry.description,
                        line=_line_of(formula, match.start()),
                    )
                )

        for connector in POWERAPPS_EXTERNAL_CONNECTORS:
            match = re.search(rf"\b{connector}\.", formula, re.IGNORECASE)
            if match:
                external_connectors.append(connector)
                risks.append(
                    FormulaRisk(
                        type="external_connector",
                        severity="medium",
                        function=connector,
                        description=f"Uses external connector: {connector}",
                        line=_line_of(formula, match.start()),
                    )
                )

        if detect_string_concatenation(formula):
            risks.append(
                FormulaRisk(
                    type="string_concatenation",
                    severity="high",
                    description="Concatenates strings with user input - potential injection risk",
                )
            )

        return FormulaAnalysisResult(
            has_formulas=True,
            platform=FormulaDialect.EXPRESSION.value,
            complexity_score=calculate_complexity_score(
                len(function_calls), nesting_depth, len(tokens)
            ),
            unsafe_functions=unsafe_functions,
            nesting_depth=nesting_depth,
            function_call_count=len(function_calls),
            external_connectors=external_connectors,
            risks=risks,
        )

    def _analyze_microflow(self, xml: str) -> FormulaAnalysisResult:
        risks: List[FormulaRisk] = []
        unsafe_actions: List[str] = []

        action_count = len(_ACTION.findall(xml))

        for action in MENDIX_UNSAFE_ACTIONS:
            match = re.search(rf"type=\"{action}\"", xml, re.IGNORECASE)
            if match:
                unsafe_actions.append(action)
                entry = action_risk(action)
                risks.append(
                    FormulaRisk(
                        type="unsafe_action",
                        severity=entry.severity,
                        action=action,
                        description=entry.description,
                        line=_line_of(xml, match.start()),
                    )
                )

        if "CallREST" in xml or "CallWebService" in xml:
            url_match = _URL.search(xml)
            url = url_match.group(1) if url_match else "unknown"
            if not any(marker in url for marker in INTERNAL_URL_MARKERS):
                risks.append(
                    FormulaRisk(
                        type="external_api",
                        severity="high",
                        action="CallREST",
                        description=f"Makes external API call to: {url}",
                    )
                )

        nesting_depth = calculate_xml_structural_depth(xml)

        return FormulaAnalysisResult(
            has_formulas=True,
            platform=FormulaDialect.WORKFLOW_XML.value,
            complexity_score=calculate_complexity_score(
                action_count, nesting_depth, MICROFLOW_NOMINAL_TOKENS
            ),
            unsafe_functions=unsafe_actions,
            nesting_depth=nesting_depth,
            function_call_count=action_count,
            external_connectors=[],
            risks=risks,
        )
