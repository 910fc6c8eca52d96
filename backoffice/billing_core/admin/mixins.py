class TenantAdminMixin:
    """
    Enforce account isolation in Django admin.
    Uses request.account (set by AccountContextMiddleware).
    """

    def _get_request_account(self, request):
        return getattr(request, "account", None)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        account = self._get_request_account(request)

        # If superuser, show everything;
        # otherwise restrict to account if available
        if request.user.is_superuser:
            return qs
        if account is None:
            return qs.none()
        return qs.filter(**{self.account_lookup: account})

    # models owned through a parent override this (e.g. "transaction__account")
    account_lookup = "account"

    def formfield_for_foreignkey(self, db_field, request, **kwargs):
        """Restrict foreignkey dropdowns to the current account."""
        account = self._get_request_account(request)

        if not request.user.is_superuser:
            rel_model = db_field.related_model
            if db_field.name == "account":
                kwargs["queryset"] = (
                    rel_model.objects.filter(pk=account.pk)
                    if account is not None else rel_model.objects.none()
                )
            elif any(f.name == "account" for f in rel_model._meta.fields):
                kwargs["queryset"] = (
                    rel_model.objects.filter(account=account)
                    if account is not None else rel_model.objects.none()
                )

        return super().formfield_for_foreignkey(db_field, request, **kwargs)

    def save_model(self, request, obj, form, change):
        # Ensure object is always owned by the account on save (unless superuser)
        if not request.user.is_superuser and self.account_lookup == "account":
            account = self._get_request_account(request)
            if account is not None:
                obj.account = account
        super().save_model(request, obj, form, change)
