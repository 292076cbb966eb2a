from django import forms
from .constants import ATTACHMENT_EXTENSIONS, CATEGORY_CHOICES
from .tickets import clean_ticket_id
from .validators import AttachmentValidationMixin


class ComplaintForm(AttachmentValidationMixin, forms.Form):
    category = forms.ChoiceField(
        choices=[("", "Select a category")] + CATEGORY_CHOICES,
        label="Complaint Category",
    )
    description = forms.CharField(
        label="Complaint Description",
        widget=forms.Textarea(
            attrs={
                "rows": 6,
                "placeholder": (
                    "Please provide detailed information about the incident, including when "
                    "and where it occurred, who was involved (if known), and any other relevant details..."
                ),
            }
        ),
    )
    # contact details are optional; anonymity is the default
    email = forms.EmailField(
        required=False,
        label="Email Address",
        widget=forms.EmailInput(attrs={"placeholder": "your.email@example.com"}),
    )
    phone = forms.CharField(
        required=False,
        max_length=32,
        label="Phone Number",
        widget=forms.TextInput(attrs={"type": "tel", "placeholder": "+91 98765 43210"}),
    )
    attachment = forms.FileField(
        required=False,
        label="Attach Evidence (Optional)",
        widget=forms.ClearableFileInput(attrs={"accept": ",".join(ATTACHMENT_EXTENSIONS)}),
    )


class TrackForm(forms.Form):
    ticket_id = forms.CharField(
        max_length=64,
        label="Ticket ID",
        widget=forms.TextInput(attrs={"placeholder": "Enter your ticket ID (e.g., CSHLD-3FA09C)"}),
    )

    def clean_ticket_id(self):
        return clean_ticket_id(self.cleaned_data["ticket_id"])
