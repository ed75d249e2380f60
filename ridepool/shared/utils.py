# Общие утилиты для всех модулей (генерация таблиц)

def generate_table(data, headers=None):
    """
    Plain-text table with columns padded to the widest cell, meant to be
    sent inside a monospace block.
    data: список списков (строки таблицы)
    headers: список заголовков
    """
    rows = [[str(cell) for cell in row] for row in data]
    if headers:
        rows.insert(0, [str(h) for h in headers])
    if not rows:
        return ""

    widths = [max(len(row[i]) for row in rows if i < len(row)) for i in range(max(len(r) for r in rows))]
    lines = [" | ".join(cell.ljust(widths[i]) for i, cell in enumerate(row)).rstrip() for row in rows]
    if headers:
        lines.insert(1, "-+-".join("-" * w for w in widths))
    return "\n".join(lines)
