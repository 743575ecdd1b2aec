"""PDF exports of meal plans and progress reports (reportlab)."""

import logging
from io import BytesIO
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from domain.enums import GoalStatus
from domain.models import MealPlan, User
from services.grocery_service import GroceryService
from services.meal_plan_service import MealPlanService, meal_macros

logger = logging.getLogger("fitmeal.pdf")

PDF_MEDIA_TYPE = "application/pdf"

_TABLE_STYLE = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#2f855a")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 0.25, colors.grey),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f0fff4")]),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]
)


def _fmt(value, digits: int = 1) -> str:
    if value is None:
        return "-"
    text = f"{float(value):.{digits}f}"
    return text.rstrip("0").rstrip(".") if "." in text else text


def _table(rows: List[list], widths: Optional[List[float]] = None) -> Table:
    table = Table(rows, colWidths=widths, repeatRows=1)
    table.setStyle(_TABLE_STYLE)
    return table


def _render(story: list, title: str) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        title=title,
        author="FitMeal Pro",
        leftMargin=18 * mm,
        rightMargin=18 * mm,
        topMargin=18 * mm,
        bottomMargin=18 * mm,
    )
    doc.build(story)
    return buffer.getvalue()


class PdfService:
    @staticmethod
    def meal_plan_pdf(plan: MealPlan) -> bytes:
        """Plan overview, one table per day, nutrition averages and the grocery list."""
        styles = getSampleStyleSheet()
        story: list = [Paragraph(escape(plan.name), styles["Title"])]
        if plan.description:
            story.append(Paragraph(escape(plan.description), styles["Normal"]))

        targets = [
            ("Fitness goal", plan.fitness_goal or "-"),
            ("Days", str(plan.duration_days)),
            ("Meals per day", str(plan.meals_per_day)),
            ("Daily calories", _fmt(plan.daily_calorie_target, 0)),
            ("Protein (g)", _fmt(plan.protein_target_g)),
            ("Carbs (g)", _fmt(plan.carbs_target_g)),
            ("Fat (g)", _fmt(plan.fat_target_g)),
        ]
        story += [
            Spacer(1, 4 * mm),
            _table([["Target", "Value"]] + [list(t) for t in targets], [60 * mm, 60 * mm]),
        ]

        for day in sorted(plan.days, key=lambda d: d.day_number):
            rows = [["Meal", "Recipe", "Servings", "kcal"]]
            for meal in sorted(day.meals, key=lambda m: m.position):
                rows.append(
                    [
                        meal.meal_type.title(),
                        Paragraph(escape(meal.recipe.name), styles["BodyText"]),
                        _fmt(meal.servings, 2),
                        _fmt(meal_macros(meal)["calories"], 0),
                    ]
                )
            story += [
                Spacer(1, 6 * mm),
                Paragraph(f"Day {day.day_number}", styles["Heading2"]),
                _table(rows, [30 * mm, 90 * mm, 22 * mm, 22 * mm]),
            ]

        average = MealPlanService.calculate_nutrition(plan)["daily_average"]
        story += [
            Spacer(1, 6 * mm),
            Paragraph("Daily average", styles["Heading2"]),
            _table(
                [
                    ["Calories", "Protein (g)", "Carbs (g)", "Fat (g)"],
                    [
                        _fmt(average["calories"], 0),
                        _fmt(average["protein_grams"]),
                        _fmt(average["carbs_grams"]),
                        _fmt(average["fat_grams"]),
                    ],
                ]
            ),
        ]

        grocery = GroceryService.build_grocery_list(plan)
        if grocery["items"]:
            rows = [["Item", "Category", "Quantity"]]
            rows += [
                [
                    Paragraph(escape(item["name"]), styles["BodyText"]),
                    item["category"],
                    f"{_fmt(item['quantity'], 2)} {item['unit'] or ''}".strip(),
                ]
                for item in grocery["items"]
            ]
            story += [
                Spacer(1, 6 * mm),
                Paragraph("Grocery list", styles["Heading2"]),
                _table(rows, [80 * mm, 40 * mm, 40 * mm]),
            ]

        content = _render(story, plan.name)
        logger.info("meal_plan_pdf_rendered meal_plan_id=%s bytes=%d", plan.id, len(content))
        return content

    @staticmethod
    def progress_pdf(customer: User, measurements: list, goals: list) -> bytes:
        """Measurement history (oldest first) followed by the customer's goals."""
        styles = getSampleStyleSheet()
        who = customer.name or customer.email
        story: list = [Paragraph(f"Progress report: {escape(who)}", styles["Title"])]

        if measurements:
            rows = [["Date", "Weight (kg)", "Body fat %", "Waist (cm)", "Chest (cm)", "Hips (cm)"]]
            for m in sorted(measurements, key=lambda m: m.measurement_date):
                rows.append(
                    [
                        m.measurement_date.isoformat(),
                        _fmt(m.weight_kg),
                        _fmt(m.body_fat_percentage),
                        _fmt(m.waist_cm),
                        _fmt(m.chest_cm),
                        _fmt(m.hips_cm),
                    ]
                )
            story += [
                Paragraph("Measurements", styles["Heading2"]),
                _table(rows),
            ]
        else:
            story.append(Paragraph("No measurements recorded yet.", styles["Normal"]))

        if goals:
            rows = [["Goal", "Status", "Target", "Current", "Progress"]]
            for goal in goals:
                target = f"{_fmt(goal.target_value)} {goal.target_unit or ''}".strip()
                rows.append(
                    [
                        Paragraph(escape(goal.goal_name), styles["BodyText"]),
                        GoalStatus(goal.status).value,
                        target,
                        _fmt(goal.current_value),
                        f"{goal.progress_percentage}%",
                    ]
                )
            story += [
                Spacer(1, 6 * mm),
                Paragraph("Goals", styles["Heading2"]),
                _table(rows, [60 * mm, 25 * mm, 30 * mm, 25 * mm, 22 * mm]),
            ]

        content = _render(story, f"Progress report {who}")
        logger.info("progress_pdf_rendered customer_id=%s bytes=%d", customer.id, len(content))
        return content
