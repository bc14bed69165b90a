# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Where test cases come from.

  - static: hand-written JSON/YAML files next to the baseline
  - record-replay: baseline outputs recorded once and replayed
  - property-based: fresh generated inputs, baseline as the oracle
"""
