# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Language adapters.

An adapter knows how to pull a function signature out of a source file and
how to run that function in an isolated child process. Adding a language
means subclassing LanguageAdapter and registering it.
"""
