"""Prompt construction for the problem generator."""
from .schema import TYPE_KEYS, Sentinel

MIN_GRADE, MAX_GRADE = 1, 6
MIN_COUNT, MAX_COUNT = 1, 10

GRADE_RANGES = """Rangos aproximados por curso (usa enteros salvo que el tipo requiera):
1º: 1-20 suma/resta; 2º: 1-50; 3º: 1-100 (multiplicación básica); 4º: hasta 1000 (dos pasos); 5º-6º: hasta 10000 (incluye división). Evita decimales salvo 5º-6º (<= 1 decimal)."""

DEFAULT_THEME_LINE = "Varía el contexto (tienda, cole, excursión, deportes) con lenguaje cercano a Primaria."


def clamp(value, low: int, high: int, default: int) -> int:
    """Coerce ``value`` to an int inside [low, high]; unparseable input gives ``default``."""
    try:
        number = int(float(value))
    except (TypeError, ValueError, OverflowError):
        number = default
    return max(low, min(high, number))


def _schema_lines() -> str:
    lines = []
    for problem_type, keys in TYPE_KEYS.items():
        quoted = ",".join(f'"{k}"' for k in keys)
        lines.append(f"- {problem_type.value}: data {{{quoted}}}; labels {{{quoted}}}")
    lines.append(
        '- DOS_OPERACIONES: "steps" con exactamente 2 objetos '
        '{"type","data","labels","operation","answer","hint"}; '
        "cada paso usa el esquema de uno de los tipos anteriores."
    )
    return "\n".join(lines)


def build_prompt(grade, type: str, theme: str | None = None, count=1) -> str:
    """Build the instruction sent to the model for ``count`` problems of one type and grade."""
    n = clamp(count, MIN_COUNT, MAX_COUNT, MIN_COUNT)
    grade = clamp(grade, MIN_GRADE, MAX_GRADE, MIN_GRADE)
    theme = (theme or "").strip()
    theme_line = (
        f'Usa el tema "{theme}" de forma natural y culturalmente neutra.' if theme else DEFAULT_THEME_LINE
    )

    rules = "\n- ".join([
        f"Devuelve SOLO un JSON válido como un array con {n} elemento(s).",
        "No incluyas texto fuera del JSON. No uses Markdown ni ```.",
        "Idioma: español (España), tono infantil y claro.",
        "Evita temas sensibles. Nombres y contextos neutrales.",
        f'answer y todos los valores numéricos en data deben ser cadenas ("12") o "{Sentinel.UNKNOWN.value}".',
        "operation: usa +, -, *, / según corresponda.",
        "labels: rellena etiquetas claras para cada clave.",
        "Si tipo = DOS_OPERACIONES: exactamente 2 pasos; el segundo paso debe usar "
        f'"{Sentinel.PREVIOUS_RESULT.value}" en una de sus claves de data para depender del primer resultado.',
        "fullAnswer: frase completa y coherente; hint: pista breve; logicCheck: pregunta de verificación.",
    ])

    return f"""Eres un generador de problemas de matemáticas para Primaria (España). Genera {n} problema(s) de {grade}º, tipo {type}.
{theme_line}
{GRADE_RANGES}
Instrucciones:
- {rules}
Esquema por tipo:
{_schema_lines()}
Salida: un ARRAY JSON de longitud {n}. Cada objeto contiene: {{"id","grade","question","type", ("data"+"labels"+"operation"+"answer") o ("steps" de 2), "fullAnswer","hint","logicCheck","createdAt"(epoch ms)}}."""
