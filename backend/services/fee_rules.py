"""
Règles de frais libres (feeRules) de la politique tarifaire.

Une condition est une expression booléenne en syntaxe Python restreinte,
évaluée sur les variables du trajet :

    distance > 50 and pickup_hour >= 22
    vehicle_id in ["veh_sprinter", "veh_bus"]
    passengers > 6 or car_seats + booster_seats >= 3

Acceptés : littéraux, variables du trajet, comparaisons, and/or/not,
+ - * / entre nombres uniquement, `in` / `not in` sur une liste littérale.
Ni appel, ni attribut, ni indice.
"""
import ast
import logging
import operator
from typing import Any, Iterable

logger = logging.getLogger(__name__)

ALLOWED_NAMES = frozenset({
    "distance",       # miles
    "hours",
    "stops",          # nombre d'arrêts
    "passengers",
    "car_seats",
    "booster_seats",
    "pickup_hour",    # 0-23, heure locale
    "pickup_minute",
    "weekday",        # 0=lundi … 6=dimanche
    "vehicle_id",
    "package_id",
    "base",           # montant de base (forfait)
})

_BIN_OPS = {
    ast.Add:  operator.add,
    ast.Sub:  operator.sub,
    ast.Mult: operator.mul,
    ast.Div:  operator.truediv,
}

_CMP_OPS = {
    ast.Eq:    operator.eq,
    ast.NotEq: operator.ne,
    ast.Lt:    operator.lt,
    ast.LtE:   operator.le,
    ast.Gt:    operator.gt,
    ast.GtE:   operator.ge,
    ast.In:    lambda a, b: a in b,
    ast.NotIn: lambda a, b: a not in b,
}

_LITERAL_TYPES = (int, float, str, bool, type(None))

# Identifiants : comparables, jamais opérandes de + - * /
_TEXT_NAMES = frozenset({"vehicle_id", "package_id"})


class FeeRuleError(ValueError):
    pass


def compile_condition(condition: str) -> ast.Expression:
    """Parse et vérifie une condition. Lève FeeRuleError si elle sort de la grammaire autorisée."""
    if not condition or not condition.strip():
        raise FeeRuleError("empty condition")
    try:
        tree = ast.parse(condition.strip(), mode="eval")
    except SyntaxError as e:
        raise FeeRuleError(f"invalid syntax: {e.msg}") from e
    _check(tree.body)
    return tree


def _check(node: ast.AST) -> None:
    if isinstance(node, ast.BoolOp):
        for value in node.values:
            _check(value)
    elif isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.Not):
        _check(node.operand)
    elif isinstance(node, (ast.BinOp, ast.UnaryOp)):
        _check_numeric(node)
    elif isinstance(node, ast.Compare) and all(type(op) in _CMP_OPS for op in node.ops):
        _check(node.left)
        for comparator in node.comparators:
            _check(comparator)
    elif isinstance(node, ast.Name):
        if node.id not in ALLOWED_NAMES:
            raise FeeRuleError(f"unknown variable '{node.id}'")
    elif isinstance(node, ast.Constant):
        if not isinstance(node.value, _LITERAL_TYPES):
            raise FeeRuleError(f"unsupported literal {node.value!r}")
    elif isinstance(node, (ast.List, ast.Tuple)):
        for elt in node.elts:
            if not isinstance(elt, ast.Constant):
                raise FeeRuleError("lists may only contain literals")
            _check(elt)
    else:
        raise FeeRuleError(f"unsupported expression: {type(node).__name__}")


def _check_numeric(node: ast.AST) -> None:
    """Opérande arithmétique : nombre, variable numérique ou sous-expression arithmétique."""
    if isinstance(node, ast.Constant):
        if isinstance(node.value, bool) or not isinstance(node.value, (int, float)):
            raise FeeRuleError(f"arithmetic on non-numeric literal {node.value!r}")
    elif isinstance(node, ast.Name):
        if node.id in _TEXT_NAMES:
            raise FeeRuleError(f"arithmetic on text variable '{node.id}'")
        _check(node)
    elif isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
        _check_numeric(node.left)
        _check_numeric(node.right)
    elif isinstance(node, ast.UnaryOp) and isinstance(node.op, ast.USub):
        _check_numeric(node.operand)
    else:
        raise FeeRuleError(f"unsupported arithmetic operand: {type(node).__name__}")


def _eval(node: ast.AST, variables: dict) -> Any:
    if isinstance(node, ast.BoolOp):
        # and/or court-circuités, comme en Python
        result = None
        for value in node.values:
            result = _eval(value, variables)
            if isinstance(node.op, ast.And) and not result:
                return result
            if isinstance(node.op, ast.Or) and result:
                return result
        return result
    if isinstance(node, ast.UnaryOp):
        operand = _eval(node.operand, variables)
        return (not operand) if isinstance(node.op, ast.Not) else -operand
    if isinstance(node, ast.BinOp):
        return _BIN_OPS[type(node.op)](_eval(node.left, variables), _eval(node.right, variables))
    if isinstance(node, ast.Compare):
        left = _eval(node.left, variables)
        for op, comparator in zip(node.ops, node.comparators):
            right = _eval(comparator, variables)
            if not _CMP_OPS[type(op)](left, right):
                return False
            left = right
        return True
    if isinstance(node, ast.Name):
        return variables.get(node.id)
    if isinstance(node, ast.Constant):
        return node.value
    if isinstance(node, (ast.List, ast.Tuple)):
        return [_eval(elt, variables) for elt in node.elts]
    raise FeeRuleError(f"unsupported expression: {type(node).__name__}")


def evaluate_condition(condition: str, variables: dict) -> bool:
    tree = compile_condition(condition)
    return bool(_eval(tree.body, variables))


def apply_fee_rules(rules: Iterable, variables: dict) -> tuple[float, list[dict]]:
    """
    Additionne les frais des règles dont la condition est vraie.
    Une règle qui échoue à l'évaluation est journalisée puis ignorée.
    """
    total = 0.0
    applied: list[dict] = []
    for rule in rules:
        try:
            matched = evaluate_condition(rule.condition, variables)
        except (FeeRuleError, TypeError, ZeroDivisionError) as e:
            logger.warning("Règle de frais ignorée (%r) : %s", rule.condition, e)
            continue
        if matched:
            total += rule.fee
            applied.append({"condition": rule.condition, "fee": rule.fee})
    return total, applied
