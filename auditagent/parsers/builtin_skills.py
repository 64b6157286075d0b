"""Built-in vulnerability skills used when no skills directory exists."""

BUILTIN_SKILLS = {
    "001-state-transition.md": """---
id: state-transition-001
name: Unchecked state transition
severity: high
description: Detect validators that accept a continuing output without checking the next datum against the allowed state transition.
prompt_fragment: Find spend handlers that let the continuing output carry an arbitrary datum or skip state-machine checks.
examples:
  - expect Some(output) = list.find(self.outputs, fn(o) { o.address == own_address })
  - output.datum is never compared with the expected next state
false_positives:
  - The next datum is rebuilt from the current datum and compared for equality.
tags:
  - state-machine
  - datum
confidence_hint: medium
---
# Instructions

Trace every spend handler that produces a continuing output at the script
address. Check that the new datum is derived from the old datum and the
redeemer, and that each field change is one the protocol allows. Report
handlers where the output datum is accepted without such a comparison.
""",
    "002-authz-boundaries.md": """---
id: authz-boundaries-002
name: Missing authorization boundary
severity: critical
description: Detect privileged actions that do not require the expected signature, token or credential.
prompt_fragment: Find redeemers that change ownership, withdraw funds or update parameters without checking extra_signatories or an authorizing token.
examples:
  - Withdraw redeemer with no list.has(self.extra_signatories, owner)
  - Admin update accepted when any input holds a policy token
false_positives:
  - The authority is enforced by a separate withdrawal or minting validator that is always executed.
tags:
  - access-control
  - signatures
confidence_hint: high
---
# Instructions

List every redeemer branch that moves value out of the script or mutates
protocol parameters. For each one, name the credential that is required and
where it is checked. Report branches with no check or with a check against
data the transaction builder controls.
""",
    "003-strict-value-equality.md": """---
id: strict-value-equality-003
name: Strict value equality
severity: high
description: Detect strict equality checks on full output values that break when ADA or extra tokens are added.
prompt_fragment: Find strict equality on ADA or full values where a greater-or-equal or token-only comparison is intended.
examples:
  - output.value == expected
  - value.lovelace_of(output.value) == amount
false_positives:
  - Comparisons that use value.without_lovelace() before checking equality.
tags:
  - plutus-v2
  - value
confidence_hint: medium
---
# Instructions

Check validator outputs and avoid false positives for without_lovelace().
Equality on complete values lets anyone lock the contract by adding dust or
an extra token to the output; prefer comparisons on the relevant asset only.
""",
}
