from django import forms
from complaints.constants import CATEGORY_CHOICES, FILTER_ALL, STATUS_CHOICES


class ComplaintFilterForm(forms.Form):
    category = forms.ChoiceField(
        required=False,
        choices=[(FILTER_ALL, "All Categories")] + CATEGORY_CHOICES,
    )
    status = forms.ChoiceField(
        required=False,
        choices=[(FILTER_ALL, "All Statuses")] + STATUS_CHOICES,
    )

    def filters(self):
        """Selected (category, status); unknown values fall back to all."""
        if not self.is_valid():
            return FILTER_ALL, FILTER_ALL
        return (
            self.cleaned_data.get("category") or FILTER_ALL,
            self.cleaned_data.get("status") or FILTER_ALL,
        )


class CaseUpdateForm(forms.Form):
    status = forms.ChoiceField(choices=STATUS_CHOICES, label="Current Status")
    admin_notes = forms.CharField(
        required=False,
        strip=False,
        label="Internal Notes",
        widget=forms.Textarea(
            attrs={
                "rows": 6,
                "placeholder": "Add internal notes about the case progress, actions taken, or next steps...",
            }
        ),
    )
