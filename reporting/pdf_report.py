import os
from datetime import datetime
from xml.sax.saxutils import escape
from pathlib import Path
from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, PageBreak
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from core.asset_resolver import resolve
from core.cia_classifier import to_impact_string
from core.risk_matrix import rating_to_style_hint
from models.risk import ConsequenceLevel, LikelihoodLevel, RegisterSummary, RiskRating, Severity
from config.settings import settings
from loguru import logger

DARK_BLUE = colors.HexColor("#0D2B45")
BLUE = colors.HexColor("#1565C0")
GRAY = colors.HexColor("#F5F7FA")
HINT_COLORS = {
    "green": colors.HexColor("#A7F3D0"),
    "yellow": colors.HexColor("#FDE68A"),
    "orange": colors.HexColor("#FED7AA"),
    "red": colors.HexColor("#FECDD3"),
}
SEV_COLORS = {
    Severity.CRITICAL: colors.HexColor("#D32F2F"),
    Severity.HIGH: colors.HexColor("#F57C00"),
    Severity.MEDIUM: colors.HexColor("#FBC02D"),
    Severity.LOW: colors.HexColor("#388E3C"),
}

class PDFReportGenerator:
    def __init__(self, summary: RegisterSummary, asset_table: dict = None, output_dir=None):
        self.summary = summary
        self.asset_table = asset_table or {}
        self.output_dir = Path(output_dir or settings.REPORT_OUTPUT_DIR)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def generate(self) -> str:
        ts = datetime.now().strftime("%Y%m%d_%H%M%S")
        slug = "".join(ch if ch.isalnum() else "_" for ch in self.summary.organization_name).strip("_")
        path = os.path.join(self.output_dir, f"RiskRegister_{slug or 'report'}_{ts}.pdf")
        doc = SimpleDocTemplate(path, pagesize=letter,
                                rightMargin=0.75*inch, leftMargin=0.75*inch,
                                topMargin=0.75*inch, bottomMargin=0.75*inch)
        story = []
        story += self._cover()
        story.append(PageBreak())
        story += self._distribution()
        story += self._heat_map()
        story += self._findings()
        story += self._risks()
        doc.build(story)
        logger.info(f"PDF generated: {path}")
        return path

    def _h1(self, text):
        return Paragraph(f"<font color='#0D2B45'><b>{text}</b></font>",
                         ParagraphStyle("h1", fontSize=16, spaceAfter=8, spaceBefore=16))

    def _body(self, text):
        return Paragraph(text, ParagraphStyle("body", fontSize=10, leading=14,
                                              alignment=TA_JUSTIFY, spaceAfter=8))

    def _cover(self):
        title_style = ParagraphStyle("title", fontSize=24, textColor=colors.white,
                                     alignment=TA_CENTER, fontName="Helvetica-Bold")
        header = Table([[Paragraph(
            f'<b>{settings.APP_NAME}</b><br/>Risk Register Review<br/>'
            f'<font size="14">{escape(self.summary.organization_name)}</font>', title_style
        )]], colWidths=[7*inch])
        header.setStyle(TableStyle([
            ("BACKGROUND", (0,0), (-1,-1), DARK_BLUE),
            ("ALIGN", (0,0), (-1,-1), "CENTER"),
            ("TOPPADDING", (0,0), (-1,-1), 40),
            ("BOTTOMPADDING", (0,0), (-1,-1), 40),
        ]))
        meta = Table([
            ["Date:", self.summary.generated_at.strftime("%B %d, %Y")],
            ["Risks:", f"{self.summary.rated_risks} rated of {self.summary.total_risks}"],
            ["Extreme:", str(len(self.summary.extreme_risks))],
            ["Classification:", "CONFIDENTIAL"],
        ], colWidths=[2*inch, 5*inch])
        meta.setStyle(TableStyle([
            ("FONTNAME", (0,0), (0,-1), "Helvetica-Bold"),
            ("FONTSIZE", (0,0), (-1,-1), 10),
            ("ROWBACKGROUNDS", (0,0), (-1,-1), [GRAY, colors.white]),
            ("TOPPADDING", (0,0), (-1,-1), 6),
            ("BOTTOMPADDING", (0,0), (-1,-1), 6),
            ("LEFTPADDING", (0,0), (-1,-1), 8),
        ]))
        return [header, Spacer(1, 0.3*inch), meta]

    def _distribution(self):
        els = [self._h1("Rating Distribution")]
        data = [["Rating", "Inherent", "Residual"]]
        for rating in reversed(list(RiskRating)):
            data.append([rating.value,
                         str(self.summary.rating_counts.get(rating, 0)),
                         str(self.summary.residual_counts.get(rating, 0))])
        t = Table(data, colWidths=[2.5*inch, 2.25*inch, 2.25*inch])
        style = [
            ("BACKGROUND", (0,0), (-1,0), BLUE),
            ("TEXTCOLOR", (0,0), (-1,0), colors.white),
            ("FONTNAME", (0,0), (-1,0), "Helvetica-Bold"),
            ("GRID", (0,0), (-1,-1), 0.5, colors.lightgrey),
            ("TOPPADDING", (0,0), (-1,-1), 6),
            ("BOTTOMPADDING", (0,0), (-1,-1), 6),
            ("LEFTPADDING", (0,0), (-1,-1), 8),
        ]
        for i, rating in enumerate(reversed(list(RiskRating)), 1):
            style.append(("BACKGROUND", (0,i), (0,i), HINT_COLORS[rating_to_style_hint(rating)]))
        t.setStyle(TableStyle(style))
        els.append(t)
        cia = ", ".join(f"{c.value}: {n}" for c, n in self.summary.cia_counts.items())
        if cia:
            els.append(Spacer(1, 0.1*inch))
            els.append(self._body(f"<b>CIA exposure</b> — {cia}"))
        return els

    def _heat_map(self):
        els = [self._h1("Risk Matrix")]
        cells = {(c.likelihood, c.consequence): c for c in self.summary.heat_map}
        rows = [["Likelihood \\ Consequence"] + [c.value for c in ConsequenceLevel]]
        style = [
            ("BACKGROUND", (0,0), (-1,0), DARK_BLUE),
            ("TEXTCOLOR", (0,0), (-1,0), colors.white),
            ("FONTNAME", (0,0), (-1,0), "Helvetica-Bold"),
            ("FONTNAME", (0,1), (0,-1), "Helvetica-Bold"),
            ("FONTSIZE", (0,0), (-1,-1), 8),
            ("ALIGN", (1,1), (-1,-1), "CENTER"),
            ("GRID", (0,0), (-1,-1), 0.5, colors.white),
        ]
        # highest likelihood on top
        for r, likelihood in enumerate(reversed(list(LikelihoodLevel)), 1):
            row = [likelihood.value]
            for c, consequence in enumerate(ConsequenceLevel, 1):
                cell = cells.get((likelihood, consequence))
                if cell is None:
                    row.append("")
                    continue
                row.append(f"{cell.rating.value}\n{cell.count}")
                style.append(("BACKGROUND", (c,r), (c,r), HINT_COLORS[rating_to_style_hint(cell.rating)]))
            rows.append(row)
        t = Table(rows, colWidths=[1.5*inch] + [1.1*inch]*5)
        t.setStyle(TableStyle(style))
        els.append(t)
        return els

    def _findings(self):
        els = [self._h1("Register Findings")]
        if not self.summary.findings:
            els.append(self._body("No consistency issues found."))
            return els
        rows = [["ID", "Severity", "Category", "Title"]]
        for f in self.summary.findings:
            rows.append([f.id, f.severity.upper(), f.category.value, f.title])
        t = Table(rows, colWidths=[0.6*inch, 0.9*inch, 1.8*inch, 3.7*inch], repeatRows=1)
        style = [
            ("BACKGROUND", (0,0), (-1,0), DARK_BLUE),
            ("TEXTCOLOR", (0,0), (-1,0), colors.white),
            ("FONTNAME", (0,0), (-1,0), "Helvetica-Bold"),
            ("FONTSIZE", (0,0), (-1,-1), 9),
            ("ROWBACKGROUNDS", (0,1), (-1,-1), [GRAY, colors.white]),
            ("GRID", (0,0), (-1,-1), 0.5, colors.lightgrey),
            ("TOPPADDING", (0,0), (-1,-1), 5),
            ("BOTTOMPADDING", (0,0), (-1,-1), 5),
            ("LEFTPADDING", (0,0), (-1,-1), 6),
        ]
        for i, f in enumerate(self.summary.findings, 1):
            c = SEV_COLORS.get(f.severity, colors.gray)
            style += [("TEXTCOLOR", (1,i), (1,i), c),
                      ("FONTNAME", (1,i), (1,i), "Helvetica-Bold")]
        t.setStyle(TableStyle(style))
        els.append(t)
        for f in self.summary.findings:
            els.append(self._body(
                f"<b>{f.id} — {escape(f.title)}</b><br/>{escape(f.description)}<br/>"
                f"<i>Evidence:</i> {escape(f.evidence or 'N/A')}<br/>"
                f"<i>Recommendation:</i> {escape(f.recommendation)}"
            ))
        return els

    def _risks(self):
        els = [PageBreak(), self._h1("Risk Register")]
        cell_style = ParagraphStyle("cell", fontSize=8, leading=10)
        rows = [["Risk ID", "L × C", "Rating", "Residual", "CIA", "Assets"]]
        records = sorted(self.summary.records, key=lambda r: (-r.risk_rating.rank, r.risk_id))
        for r in records:
            rows.append([
                r.risk_id,
                Paragraph(f"{r.likelihood.value} × {r.consequence.value}", cell_style),
                r.risk_rating.value,
                r.residual_rating.value if r.residual_rating else "—",
                to_impact_string(r.impact) or "—",
                Paragraph(escape(", ".join(resolve(r.information_asset, self.asset_table)) or "—"), cell_style),
            ])
        t = Table(rows, colWidths=[0.8*inch, 1.5*inch, 0.8*inch, 0.8*inch, 1.4*inch, 1.7*inch],
                  repeatRows=1)
        style = [
            ("BACKGROUND", (0,0), (-1,0), DARK_BLUE),
            ("TEXTCOLOR", (0,0), (-1,0), colors.white),
            ("FONTNAME", (0,0), (-1,0), "Helvetica-Bold"),
            ("FONTSIZE", (0,0), (-1,-1), 8),
            ("VALIGN", (0,0), (-1,-1), "TOP"),
            ("GRID", (0,0), (-1,-1), 0.5, colors.lightgrey),
        ]
        for i, r in enumerate(records, 1):
            style.append(("BACKGROUND", (2,i), (2,i), HINT_COLORS[rating_to_style_hint(r.risk_rating)]))
            if r.residual_rating:
                style.append(("BACKGROUND", (3,i), (3,i),
                              HINT_COLORS[rating_to_style_hint(r.residual_rating)]))
        t.setStyle(TableStyle(style))
        els.append(t)
        return els
