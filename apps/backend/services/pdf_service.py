import io
from datetime import date, timedelta
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"

def generate_weekly_timetable_pdf(teacher_name: str, week_start_date: date, lessons: list) -> io.BytesIO:
    """
    Renders one teacher's week as a landscape grid: one column per day,
    lessons stacked in start-time order inside each day.

    Args:
        teacher_name: Shown in the title.
        week_start_date: First day of the 7-day window.
        lessons: Lesson rows as returned by TimetableModel.weekly_timetable.
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=landscape(A4), rightMargin=20, leftMargin=20, topMargin=20, bottomMargin=20)

    elements = []

    styles = getSampleStyleSheet()
    style_title = ParagraphStyle('CustomTitle', parent=styles['Heading1'], fontName=FONT_BOLD, alignment=1, fontSize=16)
    style_header = ParagraphStyle('Header', parent=styles['Normal'], fontName=FONT_BOLD, fontSize=10, textColor=colors.whitesmoke)
    style_lesson = ParagraphStyle('Lesson', parent=styles['Normal'], fontName=FONT_BOLD, fontSize=9, leading=11)
    style_detail = ParagraphStyle('Detail', parent=styles['Normal'], fontName=FONT, fontSize=8, textColor=colors.grey)

    week_end_date = week_start_date + timedelta(days=6)
    title = f"Timetable: {escape(teacher_name)} ({week_start_date.isoformat()} - {week_end_date.isoformat()})"
    elements.append(Paragraph(title, style_title))
    elements.append(Spacer(1, 15))

    days = [week_start_date + timedelta(days=i) for i in range(7)]
    header_row = [Paragraph(f"{d.strftime('%a')}<br/>{d.strftime('%d.%m')}", style_header) for d in days]

    lesson_row = []
    for d in days:
        cell = []
        for lesson in sorted((l for l in lessons if l.date == d), key=lambda l: l.start_time):
            times = f"{lesson.start_time.strftime('%H:%M')}-{lesson.end_time.strftime('%H:%M')}"
            cell.append(Paragraph(f"{times} {escape(lesson.subject)}", style_lesson))
            cell.append(Paragraph(
                f"{escape(lesson.classroom)} | {lesson.type.value} | {lesson.status.value}",
                style_detail,
            ))
            cell.append(Spacer(1, 4))
        lesson_row.append(cell or "-")

    t = Table([header_row, lesson_row], colWidths=[114] * 7)
    t.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.darkblue), # Header
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('FONTNAME', (0, 0), (-1, 0), FONT_BOLD),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.grey),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('PADDING', (0, 0), (-1, -1), 6),
    ]))

    elements.append(t)
    doc.build(elements)
    buffer.seek(0)
    return buffer
