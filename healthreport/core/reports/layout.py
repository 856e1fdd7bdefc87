"""
Report Layout

Turns a RenderableDocument into a reportlab story (list of flowables):
- Header band with the report title and headline score badge
- Patient information grid
- One block per section: field cards with classification badges,
  exercise cards, or a "no data" placeholder
- Footer with the generation timestamp

The document carries its own header and footer; nothing is drawn by page
callbacks.
"""
from __future__ import annotations

from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib.colors import HexColor, white
from reportlab.lib.enums import TA_CENTER, TA_LEFT, TA_RIGHT
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.platypus import Flowable, KeepTogether, Paragraph, Spacer, Table, TableStyle

from .document import (
    DisplayUnit,
    ExerciseCard,
    OverallScore,
    PatientInfo,
    RenderableDocument,
    RenderableSection,
)

# Palette
HEADER_BG = "#4f46e5"
INFO_BG = "#f8fafc"
CARD_BORDER = "#e2e8f0"
TEXT_DARK = "#1e293b"
TEXT_MUTED = "#64748b"
TEXT_LABEL = "#475569"
EXERCISE_SCORE_BG = "#4f46e5"
FOOTER_BG = "#1e293b"

BRAND = "HealthPro Analytics"
FOOTER_NOTE = (
    "This report was generated automatically by our assessment system.<br/>"
    "For any questions, please contact our support team."
)


def _text(value: object) -> str:
    """Escape record text for reportlab's paragraph markup."""
    return escape(str(value))


class PillBadge(Flowable):
    """Rounded pill with centred bold text (classification and score badges)."""

    def __init__(
        self,
        label: str,
        fill_color: str,
        text_color: str = "#ffffff",
        font_size: float = 7.5,
        padding: float = 4,
        fill: bool = True,
        outline_color: Optional[str] = None,
    ):
        Flowable.__init__(self)
        self.label = label
        self.fill_color = fill_color
        self.text_color = text_color
        self.font_size = font_size
        self.padding = padding
        self.fill = fill
        self.outline_color = outline_color or fill_color
        self.width = stringWidth(label, "Helvetica-Bold", font_size) + 4 * padding
        self.height = font_size + 2 * padding

    def wrap(self, availWidth, availHeight):
        return self.width, self.height

    def draw(self):
        if self.fill:
            self.canv.setFillColor(HexColor(self.fill_color))
            self.canv.roundRect(0, 0, self.width, self.height, self.height / 2, fill=1, stroke=0)
            self.canv.setFillColor(HexColor(self.text_color))
        else:
            # Without printed backgrounds the badge colour moves to the text
            self.canv.setStrokeColor(HexColor(self.outline_color))
            self.canv.roundRect(0, 0, self.width, self.height, self.height / 2, fill=0, stroke=1)
            self.canv.setFillColor(HexColor(self.outline_color))
        self.canv.setFont("Helvetica-Bold", self.font_size)
        self.canv.drawCentredString(self.width / 2, self.padding + self.font_size * 0.15, self.label)


class ReportLayout:
    """
    Builds the flowable story for one document.

    Args:
        content_width: Usable page width in points (page minus margins)
        print_background: Whether coloured fills are drawn
    """

    def __init__(self, content_width: float, print_background: bool = True):
        self.content_width = content_width
        self.print_background = print_background
        self._styles = getSampleStyleSheet()
        self._create_custom_styles()

    def _create_custom_styles(self) -> None:
        self._styles.add(ParagraphStyle(
            name='ReportTitle',
            parent=self._styles['Title'],
            fontSize=24,
            leading=29,
            spaceAfter=6,
            textColor=white if self.print_background else HexColor(TEXT_DARK),
            alignment=TA_CENTER,
            fontName='Helvetica-Bold'
        ))
        self._styles.add(ParagraphStyle(
            name='ReportSubtitle',
            parent=self._styles['Normal'],
            fontSize=11,
            spaceAfter=10,
            textColor=white if self.print_background else HexColor(TEXT_MUTED),
            alignment=TA_CENTER
        ))
        self._styles.add(ParagraphStyle(
            name='InfoLabel',
            parent=self._styles['Normal'],
            fontSize=7.5,
            leading=10,
            textColor=HexColor(TEXT_MUTED),
            fontName='Helvetica-Bold'
        ))
        self._styles.add(ParagraphStyle(
            name='InfoValue',
            parent=self._styles['Normal'],
            fontSize=11,
            leading=14,
            textColor=HexColor(TEXT_DARK),
            fontName='Helvetica-Bold'
        ))
        self._styles.add(ParagraphStyle(
            name='SectionTitle',
            parent=self._styles['Heading2'],
            fontSize=16,
            spaceBefore=18,
            spaceAfter=10,
            textColor=HexColor(TEXT_DARK),
            fontName='Helvetica-Bold'
        ))
        self._styles.add(ParagraphStyle(
            name='FieldLabel',
            parent=self._styles['Normal'],
            fontSize=9.5,
            leading=12,
            textColor=HexColor(TEXT_LABEL),
            fontName='Helvetica-Bold'
        ))
        self._styles.add(ParagraphStyle(
            name='FieldValue',
            parent=self._styles['Normal'],
            fontSize=16,
            leading=20,
            textColor=HexColor(TEXT_DARK),
            fontName='Helvetica-Bold'
        ))
        self._styles.add(ParagraphStyle(
            name='CardTitle',
            parent=self._styles['Heading3'],
            fontSize=13,
            leading=16,
            textColor=HexColor(TEXT_DARK),
            fontName='Helvetica-Bold'
        ))
        self._styles.add(ParagraphStyle(
            name='ListHeading',
            parent=self._styles['Normal'],
            fontSize=9.5,
            spaceBefore=6,
            spaceAfter=3,
            textColor=HexColor(TEXT_LABEL),
            fontName='Helvetica-Bold'
        ))
        self._styles.add(ParagraphStyle(
            name='ListItem',
            parent=self._styles['Normal'],
            fontSize=9.5,
            leading=13,
            leftIndent=12,
            bulletIndent=2
        ))
        self._styles.add(ParagraphStyle(
            name='Stats',
            parent=self._styles['Normal'],
            fontSize=9,
            spaceBefore=6,
            textColor=HexColor(TEXT_MUTED)
        ))
        self._styles.add(ParagraphStyle(
            name='Placeholder',
            parent=self._styles['Normal'],
            fontSize=10,
            textColor=HexColor(TEXT_MUTED),
            fontName='Helvetica-Oblique'
        ))
        for name, align in (('FooterLeft', TA_LEFT), ('FooterCenter', TA_CENTER), ('FooterRight', TA_RIGHT)):
            self._styles.add(ParagraphStyle(
                name=name,
                parent=self._styles['Normal'],
                fontSize=8,
                leading=11,
                textColor=white if self.print_background else HexColor(TEXT_DARK),
                alignment=align
            ))

    def _background(self, color: str, cells=((0, 0), (-1, -1))) -> List[tuple]:
        if not self.print_background:
            return []
        return [('BACKGROUND', cells[0], cells[1], HexColor(color))]

    # ── Story ────────────────────────────────────────────────────────────

    def build(self, document: RenderableDocument) -> List[Flowable]:
        story: List[Flowable] = []
        story.append(self._header(document.title, document.subtitle, document.overall_score))
        story.append(self._patient_info(document.patient_info))
        story.append(Spacer(1, 10))

        for section in document.sections:
            story.extend(self._section(section))

        story.append(Spacer(1, 20))
        story.append(self._footer(document.generated_at.strftime('%b %d, %Y, %I:%M %p')))
        return story

    def _header(self, title: str, subtitle: str, score: OverallScore) -> Flowable:
        badge = PillBadge(
            f"Overall Score: {score.display}",
            fill_color="#ffffff",
            text_color=score.color,
            font_size=15,
            padding=7,
            fill=self.print_background,
            outline_color=score.color,
        )
        badge.hAlign = 'CENTER'
        band = Table(
            [[Paragraph(_text(title), self._styles['ReportTitle'])],
             [Paragraph(_text(subtitle), self._styles['ReportSubtitle'])],
             [badge]],
            colWidths=[self.content_width],
        )
        band.setStyle(TableStyle(self._background(HEADER_BG) + [
            ('ALIGN', (0, 0), (-1, -1), 'CENTER'),
            ('TOPPADDING', (0, 0), (-1, 0), 22),
            ('BOTTOMPADDING', (0, -1), (-1, -1), 22),
        ]))
        return band

    def _patient_info(self, info: PatientInfo) -> Flowable:
        cells = [
            [Paragraph(_text(label.upper()), self._styles['InfoLabel']),
             Paragraph(_text(value), self._styles['InfoValue'])]
            for label, value in info.display_items()
        ]
        columns = 4
        rows = [cells[i:i + columns] for i in range(0, len(cells), columns)]
        while len(rows[-1]) < columns:
            rows[-1].append("")

        grid = Table(rows, colWidths=[self.content_width / columns] * columns)
        grid.setStyle(TableStyle(self._background(INFO_BG) + [
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('TOPPADDING', (0, 0), (-1, -1), 10),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 10),
            ('LINEBELOW', (0, -1), (-1, -1), 0.5, HexColor(CARD_BORDER)),
        ]))
        return grid

    def _section(self, section: RenderableSection) -> List[Flowable]:
        elements: List[Flowable] = [
            Paragraph(_text(section.title), self._styles['SectionTitle'])
        ]
        if section.placeholder is not None:
            elements.append(Paragraph(_text(section.placeholder), self._styles['Placeholder']))
            return [KeepTogether(elements)]

        if section.cards:
            flow: List[Flowable] = [elements[0]]
            for card in section.cards:
                flow.append(KeepTogether([self._exercise_card(card), Spacer(1, 10)]))
            return flow

        elements.append(self._field_grid(section.units))
        return [KeepTogether(elements)]

    def _field_card(self, unit: DisplayUnit, width: float) -> Flowable:
        badge: object = ""
        if unit.badge is not None:
            badge = PillBadge(unit.badge.label.upper(), unit.badge.color, fill=self.print_background)
        card = Table(
            [[Paragraph(_text(unit.label), self._styles['FieldLabel']), badge],
             [Paragraph(_text(unit.display_value), self._styles['FieldValue']), ""]],
            colWidths=[width * 0.62, width * 0.38],
        )
        card.setStyle(TableStyle([
            ('BOX', (0, 0), (-1, -1), 0.75, HexColor(CARD_BORDER)),
            ('SPAN', (0, 1), (1, 1)),
            ('ALIGN', (1, 0), (1, 0), 'RIGHT'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('TOPPADDING', (0, 0), (-1, -1), 8),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 8),
            ('LEFTPADDING', (0, 0), (-1, -1), 10),
            ('RIGHTPADDING', (0, 0), (-1, -1), 10),
        ]))
        return card

    def _field_grid(self, units: List[DisplayUnit]) -> Flowable:
        columns = 2
        gutter = 10
        card_width = (self.content_width - gutter * (columns - 1)) / columns
        cards = [self._field_card(unit, card_width) for unit in units]
        rows = [cards[i:i + columns] for i in range(0, len(cards), columns)]
        while len(rows[-1]) < columns:
            rows[-1].append("")

        grid = Table(rows, colWidths=[card_width + gutter / 2] * columns)
        grid.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('LEFTPADDING', (0, 0), (-1, -1), 0),
            ('RIGHTPADDING', (0, 0), (-1, -1), gutter / 2),
            ('BOTTOMPADDING', (0, 0), (-1, -1), gutter),
        ]))
        return grid

    def _bullets(self, heading: str, items: List[str]) -> List[Flowable]:
        flow: List[Flowable] = [Paragraph(heading, self._styles['ListHeading'])]
        for item in items:
            flow.append(Paragraph(_text(item), self._styles['ListItem'], bulletText='•'))
        return flow

    def _exercise_card(self, card: ExerciseCard) -> Flowable:
        score_badge = PillBadge(
            f"Score: {card.score_display}", EXERCISE_SCORE_BG, font_size=9, fill=self.print_background
        )
        body: List[Flowable] = []
        if card.analysis:
            body.extend(self._bullets("Analysis:", card.analysis))
        if card.recommendations:
            body.extend(self._bullets("Recommendations:", card.recommendations))
        body.append(Paragraph(
            f"Reps: {_text(card.reps_display)}&nbsp;&nbsp;&nbsp;&nbsp;Sets: {_text(card.sets)}",
            self._styles['Stats']
        ))

        width = self.content_width
        table = Table(
            [[Paragraph(_text(card.name), self._styles['CardTitle']), score_badge],
             [body, ""]],
            colWidths=[width * 0.7, width * 0.3],
        )
        table.setStyle(TableStyle([
            ('BOX', (0, 0), (-1, -1), 0.75, HexColor(CARD_BORDER)),
            ('LINEBELOW', (0, 0), (-1, 0), 0.5, HexColor("#f1f5f9")),
            ('SPAN', (0, 1), (1, 1)),
            ('ALIGN', (1, 0), (1, 0), 'RIGHT'),
            ('VALIGN', (0, 0), (-1, 0), 'MIDDLE'),
            ('VALIGN', (0, 1), (-1, 1), 'TOP'),
            ('TOPPADDING', (0, 0), (-1, -1), 9),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 9),
            ('LEFTPADDING', (0, 0), (-1, -1), 12),
            ('RIGHTPADDING', (0, 0), (-1, -1), 12),
        ]))
        return table

    def _footer(self, generated_on: str) -> Flowable:
        footer = Table(
            [[Paragraph(f"<b>{BRAND}</b>", self._styles['FooterLeft']),
              Paragraph(FOOTER_NOTE, self._styles['FooterCenter']),
              Paragraph(f"Generated on: {_text(generated_on)}", self._styles['FooterRight'])]],
            colWidths=[self.content_width * 0.25, self.content_width * 0.5, self.content_width * 0.25],
        )
        footer.setStyle(TableStyle(self._background(FOOTER_BG) + [
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('TOPPADDING', (0, 0), (-1, -1), 16),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 16),
        ]))
        return footer
