import os
from django import forms
from django.conf import settings
from .constants import ATTACHMENT_EXTENSIONS


class AttachmentValidationMixin:
    def clean_attachment(self):
        attachment = self.cleaned_data.get("attachment")
        if attachment:
            limit = settings.MAX_ATTACHMENT_BYTES
            if attachment.size > limit:
                raise forms.ValidationError(
                    f"Attachment must be smaller than {limit // (1024 * 1024)} MB."
                )
            ext = os.path.splitext(attachment.name)[1].lower()
            if ext not in ATTACHMENT_EXTENSIONS:
                raise forms.ValidationError("Formats allowed: JPG, PNG, PDF, DOC.")
        return attachment
