"""
Document Generator Service
Exports a scored exam as a .docx results sheet.
"""
from docx import Document
from docx.shared import Pt, Inches, RGBColor

from examiner.schemas import Outcome, QuestionResult, ScoreReport

OUTCOME_LABELS = {
    Outcome.CORRECT: "Correct",
    Outcome.WRONG: "Wrong",
    Outcome.UNATTEMPTED: "Unattempted",
}
OUTCOME_COLORS = {
    Outcome.CORRECT: RGBColor(0x04, 0x78, 0x57),
    Outcome.WRONG: RGBColor(0xB9, 0x1C, 0x1C),
    Outcome.UNATTEMPTED: RGBColor(0x64, 0x74, 0x8B),
}


def option_label(index: int) -> str:
    """Letter labels a..z, then numbers from 27 on."""
    if index < 26:
        return "abcdefghijklmnopqrstuvwxyz"[index]
    return str(index + 1)


def _add_options(doc: Document, result: QuestionResult) -> None:
    for index, option in enumerate(result.options):
        label = option_label(index)
        p_opt = doc.add_paragraph()
        p_opt.paragraph_format.left_indent = Inches(0.5)
        marks = []
        if option == result.correct_answer:
            marks.append("right answer")
        if option == result.user_answer:
            marks.append("your answer")
        run = p_opt.add_run(f"{label}) {option}")
        if option == result.correct_answer:
            run.bold = True
        if marks:
            p_opt.add_run(f"  ({', '.join(marks)})").italic = True


def generate_results_docx(report: ScoreReport, output_path: str, title: str = "Exam Results") -> None:
    """
    Generates a .docx results sheet from a ScoreReport.

    Args:
        report: Scored exam.
        output_path: Absolute path where the .docx file should be saved.
        title: Document heading.
    """
    print(f"\n[Publisher] Generating results DOCX at {output_path}...")
    doc = Document()
    doc.core_properties.title = title

    style = doc.styles['Normal']
    style.font.size = Pt(12)

    heading = doc.add_heading(title, 0)
    heading.alignment = 1  # Center

    p_score = doc.add_paragraph()
    p_score.alignment = 1
    p_score.add_run(f"{report.percentage}%").bold = True
    p_score.add_run(f"  You scored {report.correct_count} out of {report.total}")

    table = doc.add_table(rows=2, cols=4)
    table.style = 'Table Grid'
    summary = [
        ("Attempted", report.attempted_count),
        ("Correct", report.correct_count),
        ("Wrong", report.wrong_count),
        ("Unattempted", report.unattempted_count),
    ]
    for column, (label, value) in enumerate(summary):
        table.rows[0].cells[column].text = label
        table.rows[1].cells[column].text = str(value)

    for result in report.results:
        p = doc.add_paragraph()
        p.paragraph_format.space_before = Pt(12)
        p.add_run(f"{result.number}. {result.question}").bold = True
        status = p.add_run(f"  [{OUTCOME_LABELS[result.outcome]}]")
        status.font.color.rgb = OUTCOME_COLORS[result.outcome]

        _add_options(doc, result)

        if result.outcome == Outcome.UNATTEMPTED:
            doc.add_paragraph(f"Not answered. Right answer: {result.correct_answer}")
        elif result.outcome == Outcome.WRONG:
            doc.add_paragraph(
                f"Your answer: {result.user_answer}. Right answer: {result.correct_answer}"
            )

    doc.save(output_path)
    print("Done! File saved.")
