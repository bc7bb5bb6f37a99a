from __future__ import annotations

from pathlib import Path

from .contracts import AssembleConfig

_HEADER = "% Generated by assemble-pages. Do not edit; regenerated on every describe stage.\n"


def _tex_path(name: str) -> str:
    return name.replace("\\", "/")


def build_inner_document(*, image_names: list[str], config: AssembleConfig) -> str:
    """
    One full-bleed page per scaled image, on a paper size matching the scan
    geometry. The document opens with a blank page; the outer document drops it.
    """

    lines = [
        _HEADER,
        "\\documentclass{article}\n",
        "\\usepackage{graphicx}\n",
        (
            f"\\usepackage[paperwidth={config.page_width_in:.4f}in,"
            f"paperheight={config.page_height_in:.4f}in,margin=0pt]{{geometry}}\n"
        ),
        "\\pagestyle{empty}\n",
        "\\setlength{\\parindent}{0pt}\n",
        "\\setlength{\\topskip}{0pt}\n",
        "\\begin{document}\n",
        "\\null\n",
        "\\newpage\n",
    ]
    for name in image_names:
        lines.append(f"\\includegraphics[width=\\paperwidth,height=\\paperheight]{{{_tex_path(name)}}}\n")
        lines.append("\\newpage\n")
    lines.append("\\end{document}\n")
    return "".join(lines)


def build_outer_document(*, inner_pdf_name: str) -> str:
    return (
        _HEADER
        + "\\documentclass{article}\n"
        + "\\usepackage{pdfpages}\n"
        + "\\begin{document}\n"
        + f"\\includepdf[pages=2-]{{{_tex_path(inner_pdf_name)}}}\n"
        + "\\end{document}\n"
    )


def build_merge_document(*, pdf_names: list[str], angle: int = 0) -> str:
    options = "pages=-" if angle == 0 else f"pages=-,angle={angle}"
    lines = [
        _HEADER,
        "\\documentclass{article}\n",
        "\\usepackage{pdfpages}\n",
        "\\begin{document}\n",
    ]
    for name in pdf_names:
        lines.append(f"\\includepdf[{options}]{{{_tex_path(name)}}}\n")
    lines.append("\\end{document}\n")
    return "".join(lines)


def write_description(*, text: str, out_file: Path) -> Path:
    out_file.parent.mkdir(parents=True, exist_ok=True)
    out_file.write_text(text, encoding="utf-8")
    return out_file
