"""
toyc Backend Package.

Contains the llvmlite code generation backend. llvmlite is an optional
dependency; HAS_LLVMLITE reports whether it is installed.

Author: xwest
"""

from .llvm_backend import LLVMBackend, HAS_LLVMLITE

__all__ = ['LLVMBackend', 'HAS_LLVMLITE']
