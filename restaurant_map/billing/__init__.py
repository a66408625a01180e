"""
Billing / feature entitlement collaborators.

Responsibilities:
- Declare which plans unlock which premium features.
- Answer ``check(customer, feature)`` either locally or via the hosted
  billing API.
"""
