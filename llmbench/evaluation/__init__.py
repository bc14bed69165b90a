# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
The evaluation pipeline, its result types and its error taxonomy.
"""
