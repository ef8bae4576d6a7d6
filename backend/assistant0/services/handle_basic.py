"""Basic Handlers - calculator and web search (2 methods).

Invariants:
    - calculator evaluates arithmetic only: names, calls and attributes are rejected
    - web_search needs a SerpAPI key; the handler is never registered without one
    - Failures raise ToolExecutionError (reported back to the model, not fatal)

Design Decisions:
    - AST walk over eval(): no code execution path, bounded exponent size
    - SerpAPI JSON endpoint over an SDK: one GET, httpx already in the stack
"""

import ast
import operator

import httpx

from assistant0.core.errors import ToolExecutionError

SERPAPI_URL = "https://serpapi.com/search.json"

_BIN_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.FloorDiv: operator.floordiv,
    ast.Mod: operator.mod,
    ast.Pow: operator.pow,
}
_UNARY_OPS = {ast.UAdd: operator.pos, ast.USub: operator.neg}
_MAX_EXPONENT = 10_000


def evaluate_expression(expression: str) -> float | int:
    """Evaluate an arithmetic expression without eval()."""
    try:
        tree = ast.parse(expression.strip(), mode="eval")
    except SyntaxError as e:
        raise ValueError(f"Invalid expression: {expression!r}") from e
    return _eval_node(tree.body)


def _eval_node(node: ast.AST) -> float | int:
    if isinstance(node, ast.Constant) and isinstance(node.value, (int, float)) \
            and not isinstance(node.value, bool):
        return node.value
    if isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
        left, right = _eval_node(node.left), _eval_node(node.right)
        if isinstance(node.op, ast.Pow) and abs(right) > _MAX_EXPONENT:
            raise ValueError("Exponent too large")
        return _BIN_OPS[type(node.op)](left, right)
    if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
        return _UNARY_OPS[type(node.op)](_eval_node(node.operand))
    raise ValueError(f"Unsupported element: {type(node).__name__}")


class BasicHandlers:
    """Credential-free tools."""

    def __init__(self, http: httpx.AsyncClient, serpapi_api_key: str | None = None):
        self.http = http
        self.serpapi_api_key = serpapi_api_key

    async def calculator(self, input_data: dict) -> dict:
        expression = str(input_data.get("expression", ""))
        try:
            result = evaluate_expression(expression)
        except (ValueError, ZeroDivisionError, OverflowError) as e:
            raise ToolExecutionError("calculator", str(e), "INVALID_EXPRESSION")
        return {"status": "ok", "expression": expression, "result": result}

    async def web_search(self, input_data: dict) -> dict:
        query = str(input_data.get("query", "")).strip()
        if not query:
            raise ToolExecutionError("web_search", "query is required", "VALIDATION_ERROR")
        num = max(1, min(int(input_data.get("num_results") or 5), 10))
        try:
            response = await self.http.get(SERPAPI_URL, params={
                "q": query, "api_key": self.serpapi_api_key,
                "engine": "google", "num": num,
            })
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise ToolExecutionError("web_search", f"Search failed: {e}", "SEARCH_FAILED")

        body = response.json()
        results = [
            {
                "title": r.get("title"),
                "link": r.get("link"),
                "snippet": r.get("snippet"),
            }
            for r in body.get("organic_results", [])[:num]
        ]
        answer = (body.get("answer_box") or {}).get("answer") \
            or (body.get("answer_box") or {}).get("snippet")
        out = {"status": "ok", "query": query, "results": results}
        if answer:
            out["answer"] = answer
        return out
