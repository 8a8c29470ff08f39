"""Email template rendering: {{variable}} substitution and plain-text to HTML."""

import re

_PLACEHOLDER = re.compile(r'{{\s*(\w+)\s*}}')


def render_template_text(text, variables):
    """Replace {{name}} placeholders; unknown names are left untouched, None renders empty."""
    if not text:
        return ''

    def _sub(match):
        key = match.group(1)
        if key not in variables:
            return match.group(0)
        value = variables[key]
        return '' if value is None else str(value)

    return _PLACEHOLDER.sub(_sub, text)


def to_html(body):
    return body.replace('\n', '<br>')


def submission_variables(submission):
    return {
        'ho_ten': submission.get('full_name'),
        'id_tham_du': submission.get('attendance_id'),
        'email': submission.get('email'),
        'loai_dai_bieu': submission.get('attendee_type'),
    }


def speaker_variables(speaker):
    return {
        'ho_ten': speaker.get('full_name'),
        'hoc_ham': speaker.get('academic_rank'),
        'email': speaker.get('email'),
        'ten_bai_bao_cao': speaker.get('report_title_vn'),
    }
