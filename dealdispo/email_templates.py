"""
Investment Email Templates
Renders a listing draft into a self-contained HTML email with inline styles.

Every section is optional: a section is emitted only when the fields it
shows are populated (see is_empty_or_zero). All user text goes through
sanitize_string and every image URL through sanitize_url.
"""

from typing import Optional

from .domain.listing.models import CompProperty, ConditionItem, FormState, ItemType, MediaAsset
from .utils.sanitization import is_empty_or_zero, sanitize_string, sanitize_url, split_lines

THEME = {
    "page_bg": "#f4f4f4",
    "card_bg": "#ffffff",
    "panel_bg": "#f8f9fa",
    "title": "#2C3E50",
    "subtitle": "#7F8C8D",
    "text": "#333333",
    "label": "#666666",
    "border": "#eeeeee",
    "feature_bg": "#E8F5E9",
    "repair_bg": "#FFF3E0",
}

FONT_STACK = "Arial, Helvetica, sans-serif"

SECTION_TITLES = {
    ItemType.FEATURE: "Positive Features",
    ItemType.REPAIR: "Required Repairs",
}


def _section_title(text: str) -> str:
    return (
        f'<h2 style="text-align: center; color: {THEME["text"]}; font-size: 24px; margin: 0 0 20px;">'
        f"{sanitize_string(text)}</h2>"
    )


def _detail_cell(label: str, value: str) -> str:
    return f"""
            <td width="33%" style="padding: 15px; text-align: center; vertical-align: top;">
              <div style="color: {THEME['label']}; font-size: 14px; margin-bottom: 8px;">{sanitize_string(label)}</div>
              <div style="color: {THEME['text']}; font-size: 18px; font-weight: bold;">{sanitize_string(value)}</div>
            </td>"""


def _grid(cells: list[str], per_row: int = 3) -> str:
    """Lay cells out in a fixed-width table; Outlook ignores CSS grid"""
    rows = []
    for start in range(0, len(cells), per_row):
        rows.append("<tr>" + "".join(cells[start : start + per_row]) + "</tr>")
    return (
        '<table role="presentation" border="0" cellpadding="0" cellspacing="0" width="100%">'
        + "".join(rows)
        + "</table>"
    )


def logo_section(logo_url: str) -> str:
    src = sanitize_url(logo_url)
    if not src:
        return ""
    return f"""
      <div style="text-align: center; padding: 20px; margin: 0 auto;">
        <img src="{src}" alt="Company Logo" style="max-width: 200px; height: auto; display: block; margin: 0 auto;" />
      </div>"""


def headline_section(state: FormState) -> str:
    """Asking price (sale price, else market value) over the address"""
    listing = state.listing
    price = listing.sale_price if not is_empty_or_zero(listing.sale_price) else listing.market_value
    parts = []
    if not is_empty_or_zero(price):
        parts.append(
            f'<h1 style="margin: 0; padding: 40px 40px 10px; color: {THEME["title"]}; font-size: 36px; '
            f'font-weight: bold; text-align: center;">{sanitize_string(price)}</h1>'
        )
    if listing.address.strip():
        parts.append(
            f'<p style="margin: 0; padding: 0 40px 20px; color: {THEME["subtitle"]}; font-size: 16px; '
            f'text-align: center;">{sanitize_string(listing.address)}</p>'
        )
    return "\n      ".join(parts)


def main_image_section(image: Optional[MediaAsset]) -> str:
    src = sanitize_url(image.url) if image else ""
    if not src:
        return ""
    return f"""
      <div style="padding: 0 40px;">
        <img src="{src}" alt="Property" style="width: 100%; max-width: 720px; height: auto; display: block; border-radius: 4px; margin: 0 auto;" />
      </div>"""


def message_section(message: str) -> str:
    paragraphs = split_lines(message)
    if not paragraphs:
        return ""
    body = "".join(f'<p style="margin: 0 0 15px;">{sanitize_string(p)}</p>' for p in paragraphs)
    return f"""
      <div style="padding: 20px 40px; color: {THEME['text']}; line-height: 1.6;">
        {body}
      </div>"""


def property_details_section(state: FormState) -> str:
    listing = state.listing
    details = [
        ("Square Footage", listing.square_footage),
        ("Bedrooms/Baths", state.bedrooms_baths()),
        ("Lot Size", listing.lot_size),
        ("Year Built", listing.year_built),
        ("Market Value", listing.market_value),
        ("ARV", listing.arv),
        ("Sale Price", listing.sale_price),
        ("Occupancy", listing.occupancy),
    ]
    cells = [_detail_cell(label, value) for label, value in details if not is_empty_or_zero(value)]
    if not cells:
        return ""
    return f"""
      <div style="padding: 20px 40px; background: {THEME['panel_bg']}; margin: 20px 0;">
        {_grid(cells)}
      </div>"""


def investment_section(state: FormState) -> str:
    investment = state.investment
    details = [
        ("Repair Costs", investment.repair_costs),
        ("Profit Margin", investment.profit_margin),
        ("Comparable Properties", investment.comparable_properties),
        ("Market Trends", investment.market_trends),
    ]
    cells = [_detail_cell(label, value) for label, value in details if not is_empty_or_zero(value)]
    if not cells:
        return ""
    return f"""
      <div style="padding: 20px 40px; background: {THEME['panel_bg']}; margin: 20px 0;">
        {_section_title("Investment Details")}
        {_grid(cells, per_row=2)}
      </div>"""


def _item_card(item: ConditionItem) -> str:
    background = THEME["feature_bg"] if item.type == ItemType.FEATURE else THEME["repair_bg"]
    year = ""
    if item.year.strip():
        year = f'<div style="color: {THEME["label"]}; font-size: 14px;">({sanitize_string(item.year)})</div>'
    details = ""
    if item.details.strip():
        details = f'<div style="margin-top: 8px; font-size: 14px;">{sanitize_string(item.details)}</div>'
    return f"""
            <td width="50%" style="padding: 8px; vertical-align: top;">
              <div style="padding: 15px; border-radius: 8px; text-align: center; background-color: {background};">
                <div style="font-weight: bold; margin-bottom: 5px;">{sanitize_string(item.name)}</div>
                {year}{details}
              </div>
            </td>"""


def condition_sections(state: FormState) -> str:
    sections = []
    for item_type, items in state.checked_items_by_type().items():
        if not items:
            continue
        sections.append(
            f"""
      <div style="padding: 20px 40px; border-top: 1px solid {THEME['border']};">
        {_section_title(SECTION_TITLES[item_type])}
        {_grid([_item_card(item) for item in items], per_row=2)}
      </div>"""
        )
    return "".join(sections)


def _comp_row(comp: CompProperty) -> str:
    specs = " / ".join(
        value
        for value in (
            f"{comp.bedrooms} bd" if comp.bedrooms.strip() else "",
            f"{comp.baths} ba" if comp.baths.strip() else "",
            comp.square_footage.strip(),
        )
        if value
    )
    cell = f'style="padding: 8px; border-bottom: 1px solid {THEME["border"]}; font-size: 14px;"'
    return (
        "<tr>"
        f"<td {cell}>{sanitize_string(comp.address)}</td>"
        f"<td {cell}>{sanitize_string(comp.sale_price)}</td>"
        f"<td {cell}>{sanitize_string(comp.sale_date)}</td>"
        f"<td {cell}>{sanitize_string(specs)}</td>"
        "</tr>"
    )


def comps_section(comps: list[CompProperty]) -> str:
    rows = [_comp_row(comp) for comp in comps if comp.address.strip()]
    if not rows:
        return ""
    header_cell = f'style="padding: 8px; text-align: left; color: {THEME["label"]}; font-size: 13px;"'
    return f"""
      <div style="padding: 20px 40px; border-top: 1px solid {THEME['border']};">
        {_section_title("Comparable Sales")}
        <table role="presentation" border="0" cellpadding="0" cellspacing="0" width="100%" style="border-collapse: collapse;">
          <tr><th {header_cell}>Address</th><th {header_cell}>Price</th><th {header_cell}>Sold</th><th {header_cell}>Specs</th></tr>
          {"".join(rows)}
        </table>
      </div>"""


def gallery_section(images: list[MediaAsset]) -> str:
    sources = [sanitize_url(image.url) for image in images]
    cells = [
        f"""
            <td width="33%" style="padding: 5px; text-align: center; vertical-align: top;">
              <img src="{src}" alt="Property gallery image" style="width: 100%; height: auto; border-radius: 4px;" />
            </td>"""
        for src in sources
        if src
    ]
    if not cells:
        return ""
    return f"""
      <div style="padding: 20px 40px;">
        {_section_title("Property Gallery")}
        {_grid(cells)}
      </div>"""


def cta_section(phone_number: str) -> str:
    if not phone_number.strip():
        return ""
    return f"""
      <div style="text-align: center; padding: 30px 40px;">
        <h2 style="color: {THEME['text']}; font-size: 24px; margin: 0 0 10px;">Ready to make an offer?</h2>
        <div style="color: {THEME['text']}; font-size: 32px; font-weight: bold;">Call {sanitize_string(phone_number)}</div>
      </div>"""


def footer_section(footer_message: str, mailing_address: Optional[str] = None) -> str:
    lines = split_lines(footer_message)
    if mailing_address:
        lines.append(mailing_address)
    if not lines:
        return ""
    body = "".join(f'<p style="margin: 0 0 10px;">{sanitize_string(line)}</p>' for line in lines)
    return f"""
      <div style="padding: 20px 40px; background: {THEME['panel_bg']}; text-align: center; color: {THEME['label']}; font-size: 14px; margin-top: 20px;">
        {body}
      </div>"""


def render_email_body(state: FormState, mailing_address: Optional[str] = None) -> str:
    """The card content shared by the email and the preview pane"""
    sections = [
        logo_section(state.content.logo_url),
        headline_section(state),
        main_image_section(state.main_image),
        message_section(state.content.custom_message),
        property_details_section(state),
        investment_section(state),
        condition_sections(state),
        comps_section(state.comps),
        gallery_section(state.gallery_images),
        cta_section(state.content.phone_number),
        footer_section(state.content.footer_message, mailing_address),
    ]
    content = "".join(section for section in sections if section)
    return (
        f'<div style="max-width: 800px; margin: 0 auto; font-family: {FONT_STACK}; color: {THEME["text"]}; '
        f'background: {THEME["card_bg"]}; border-radius: 8px; overflow: hidden;">'
        f"{content}\n    </div>"
    )


def render_investment_email(state: FormState, mailing_address: Optional[str] = None) -> str:
    """Complete HTML document ready to paste into an email platform"""
    title = sanitize_string(state.content.subject or "Investment Property")
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{title}</title>
</head>
<body style="margin: 0; padding: 20px; background-color: {THEME['page_bg']}; font-family: {FONT_STACK};">
  <table role="presentation" border="0" cellpadding="0" cellspacing="0" width="100%" style="background-color: {THEME['page_bg']};">
    <tr>
      <td align="center">
    {render_email_body(state, mailing_address)}
      </td>
    </tr>
  </table>
</body>
</html>"""


def render_preview(state: FormState) -> str:
    """Fragment shown in the preview pane"""
    return f"""
<div style="padding: 20px;">
    {render_email_body(state)}
</div>"""
