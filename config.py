#!/usr/bin/python
import os
import math
import numpy as np
import sys
import configparser

##########################################################
##########################################################
##########################################################

cfg = {}

### should be called once from main
def init_config(fname,show):
    if(not os.path.isfile(fname)):
        print(f"Config file {fname} does not exist. Quitting.")
        quit()
    ConfigCls = Config(fname,show)
    global cfg
    cfg = ConfigCls.map
    return cfg

def show_config():
    print("Configuration map:")
    for key,val in cfg.items(): print(f"{key}: {val}")
    print("")

### config file looks like that:
# [SECTION_NAME]
# key1 = value1
# key2 = value2
class Config:
    def __init__(self,fname,doprint=False):
        self.fname = fname
        self.doprint = doprint
        self.configurator = configparser.RawConfigParser()
        self.configurator.optionxform = str ### preserve case sensitivity
        self.map = {} ### the config map
        self.set(fname,doprint)
        self.check_inputs()

    def read(self,fname):
        if(self.doprint): print("Reading configuration from: ",fname)
        self.configurator.read(fname)

    def has(self,section,var):
        return self.configurator.has_option(section,var)

    def getS(self,section,var):
        return self.configurator.get(section,var).strip()

    def getNum(self,section,var):
        ### plain numbers or arithmetic expressions like 2*0.25
        expr = self.getS(section,var)
        return eval(expr) if(not expr.isnumeric()) else int(expr)

    def getF(self,section,var):
        return float(self.getNum(section,var))

    def getI(self,section,var):
        return int(self.getNum(section,var))

    def getB(self,section,var):
        return (self.getI(section,var)==1)

    def getArrS(self,section,var):
        return self.getS(section,var).split()

    def getMapS2S(self,section,var):
        ### "L1:filterA L2:filterB", insertion order kept
        m = {}
        for item in self.getArrS(section,var):
            key,val = item.split(":",1)
            m.update( {key:val} )
        return m

    def getMapS2F(self,section,var):
        ### "loose:1.5 medium:3.0"
        m = {}
        for key,val in self.getMapS2S(section,var).items():
            m.update( {key:float(val)} )
        return m

    def getMapS2ArrI(self,section,var):
        ### "b:5 light:1,2,3,21"
        m = {}
        for key,val in self.getMapS2S(section,var).items():
            m.update( {key:[int(x) for x in val.split(",")]} )
        return m

    def getMap2MapF(self,section,var):
        ### "NameH:switch=1,nbins=100,xmin=0,xmax=1 OtherH:..."
        m = {}
        for key,pars in self.getMapS2S(section,var).items():
            ff = {}
            for par in pars.split(","):
                name,val = par.split("=")
                ff.update( {name:float(val)} )
            m.update( {key:ff} )
        return m

    def add(self,name,var):
        self.map.update( {name:var} )

    def set(self,fname,doprint=False):
        ### read
        self.read(fname)
        ### set
        self.add("inputfiles", self.getArrS('RUN','inputfiles'))
        self.add("outputfile", self.getS('RUN','outputfile'))
        self.add("nmax2process", self.getI('RUN','nmax2process'))
        self.add("nprintout", self.getI('RUN','nprintout'))
        self.add("verbose", self.getI('RUN','verbose'))
        self.add("doplots", self.getB('RUN','doplots'))

        self.add("doDigi", self.configurator.has_section('DIGI'))
        if(self.map["doDigi"]):
            self.add("pixelFlag", self.getB('DIGI','pixelFlag'))
            self.add("clusterFlag", self.getB('DIGI','clusterFlag'))
            self.add("topFolder", self.getS('DIGI','topFolder'))
            self.add("histos", self.getMap2MapF('DIGI','histos') if(self.has('DIGI','histos')) else {})

        self.add("doTrigger", self.configurator.has_section('TRIGGER'))
        if(self.map["doTrigger"]):
            self.add("triggerPath", self.getS('TRIGGER','triggerPath'))
            self.add("triggerPaths", self.getArrS('TRIGGER','triggerPaths'))
            self.add("pathModules", self.getArrS('TRIGGER','pathModules'))
            self.add("levels", self.getMapS2S('TRIGGER','levels'))
            ### jet-level plots, all optional
            self.add("mcRadius", self.getF('TRIGGER','mcRadius') if(self.has('TRIGGER','mcRadius')) else 0.3)
            self.add("offlineRadius", self.getF('TRIGGER','offlineRadius') if(self.has('TRIGGER','offlineRadius')) else 0.3)
            self.add("mcFlavours", self.getMapS2ArrI('TRIGGER','mcFlavours') if(self.has('TRIGGER','mcFlavours')) else {})
            self.add("offlineCuts", self.getMapS2F('TRIGGER','offlineCuts') if(self.has('TRIGGER','offlineCuts')) else {})
            self.add("jetMaxEnergy", self.getF('TRIGGER','jetMaxEnergy') if(self.has('TRIGGER','jetMaxEnergy')) else 300.)
            self.add("jetMaxEta", self.getF('TRIGGER','jetMaxEta') if(self.has('TRIGGER','jetMaxEta')) else 5.)
            self.add("vertexMaxR", self.getF('TRIGGER','vertexMaxR') if(self.has('TRIGGER','vertexMaxR')) else 0.1)
            self.add("vertexMaxZ", self.getF('TRIGGER','vertexMaxZ') if(self.has('TRIGGER','vertexMaxZ')) else 15.)

        self.add("doSegment", self.configurator.has_section('SEGMENT'))
        if(self.map["doSegment"]):
            self.add("minLayerWithRechitPerChamber", self.getI('SEGMENT','minLayerWithRechitPerChamber'))
            self.add("minLayerWithSimhitPerChamber", self.getI('SEGMENT','minLayerWithSimhitPerChamber'))
            self.add("minRechitPerSegment", self.getI('SEGMENT','minRechitPerSegment'))
            self.add("maxPhiSeparation", self.getF('SEGMENT','maxPhiSeparation'))
            self.add("maxThetaSeparation", self.getF('SEGMENT','maxThetaSeparation'))

        if(doprint):
            print("Configuration map:")
            for key,val in self.map.items():
                print(f"{key}: {val}")
            print("")

    def error(self,msg):
        sys.exit(msg)

    def check_inputs(self):
        if(self.doprint): print(f"Checking config file integrity...")
        if(not self.map["doDigi"] and not self.map["doTrigger"] and not self.map["doSegment"]):
            self.error(f"at least one of the DIGI, TRIGGER or SEGMENT sections must be present")
        if(self.map["doTrigger"]):
            if(self.map["triggerPath"] not in self.map["triggerPaths"]):
                self.error(f'triggerPath {self.map["triggerPath"]} must be one of triggerPaths {self.map["triggerPaths"]}')
            if(len(self.map["levels"])<1):
                self.error(f"at least one trigger level must be given")
            if(self.map["mcRadius"]<=0 or self.map["offlineRadius"]<=0):
                self.error(f'mcRadius and offlineRadius must be positive (they are set to {self.map["mcRadius"]}, {self.map["offlineRadius"]})')
        if(self.map["doSegment"]):
            if(self.map["minLayerWithRechitPerChamber"]<1 or self.map["minLayerWithRechitPerChamber"]>6):
                self.error(f'minLayerWithRechitPerChamber must be in [1,6] (it is set to {self.map["minLayerWithRechitPerChamber"]})')
            if(self.map["minLayerWithSimhitPerChamber"]<1 or self.map["minLayerWithSimhitPerChamber"]>6):
                self.error(f'minLayerWithSimhitPerChamber must be in [1,6] (it is set to {self.map["minLayerWithSimhitPerChamber"]})')
            if(self.map["minRechitPerSegment"]<3):
                self.error(f'minRechitPerSegment must be at least 3 to have a positive number of degrees of freedom (it is set to {self.map["minRechitPerSegment"]})')
        if(self.doprint): print(f"Config file integrity check passed!")

    def __str__(self):
        return f"Config: {self.fname}"
